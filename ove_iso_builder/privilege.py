# /*
# * Copyright © 2023 VMware, Inc.
# * SPDX-License-Identifier: Apache-2.0 OR GPL-2.0-only
# */
# pylint: disable=missing-docstring

import grp
import os
import pwd


class PrivilegedExecutor(object):
    """
    Runs commands that need root. When the builder already runs as root
    the commands are run unchanged, otherwise they are prefixed with sudo.
    """

    def __init__(self, cmd_util, prefix=None):
        self.cmd_util = cmd_util
        self.prefix = list(prefix or [])

    @classmethod
    def detect(cls, cmd_util, euid=None):
        if euid is None:
            euid = os.geteuid()
        if euid == 0:
            return cls(cmd_util)
        return cls(cmd_util, prefix=["sudo"])

    @property
    def elevated(self):
        return bool(self.prefix)

    def wrap(self, cmd):
        return self.prefix + list(cmd)

    def run(self, cmd):
        return self.cmd_util.run(self.wrap(cmd))


def invoking_owner():
    """
    Return "user:group" of the invoking identity, used to hand the
    extracted tree back from root.
    """
    uid = os.getuid()
    gid = os.getgid()
    try:
        user = pwd.getpwuid(uid).pw_name
    except KeyError:
        user = str(uid)
    try:
        group = grp.getgrgid(gid).gr_name
    except KeyError:
        group = str(gid)
    return f"{user}:{group}"
