#
# Copyright © 2023 VMware, Inc.
# SPDX-License-Identifier: Apache-2.0 OR GPL-2.0-only
#

import logging
import os
import shutil

import pytest

from ove_iso_builder.commandutils import CommandUtils
from ove_iso_builder.privilege import PrivilegedExecutor
from ove_iso_builder.workspace import WorkingSpace


VOLUME_LABEL = "rhcos-417.94.202410090854-0"

TOC_OUTPUT = f"""xorriso 1.5.4 : RockRidge filesystem manipulator, libburnia project.

Drive current: -indev 'rhcos.iso'
Media current: stdio file, overwriteable
Media status : is written , is appendable
Boot record  : El Torito , MBR isohybrid cyl-align-off GPT
Media summary: 1 session, 522580 data blocks, 1021m data, 12.4g free
Volume id    : '{VOLUME_LABEL}'
TOC layout   : Idx ,  sbsector ,       Size , Volume Id
ISO session  :   1 ,         0 ,    522580s , {VOLUME_LABEL}
Media nwa    : 522592s
"""

EFIBOOT_SIZE = 10 * 1024 * 1024 + 1


def strip_sudo(cmd):
    if cmd and cmd[0] == "sudo":
        return cmd[1:]
    return cmd


def populate_iso_tree(target):
    """Write the files of a minimal live ISO into target."""
    os.makedirs(os.path.join(target, "isolinux"), exist_ok=True)
    os.makedirs(os.path.join(target, "images"), exist_ok=True)
    with open(os.path.join(target, "isolinux", "isolinux.bin"), "wb") as f:
        f.write(b"\x00" * 2048)
    with open(os.path.join(target, "images", "efiboot.img"), "wb") as f:
        f.write(b"\x00" * EFIBOOT_SIZE)


class FakeCommandUtils(CommandUtils):
    """
    Records every command and dispatches it, without sudo, to a handler
    keyed by program name. Programs without a handler succeed silently.
    """

    def __init__(self, logger, handlers=None):
        super().__init__(logger)
        self.commands = []
        self.handlers = dict(handlers or {})

    def run_output(self, cmd, log_output=True):
        self.commands.append(list(cmd))
        argv = strip_sudo(list(cmd))
        handler = self.handlers.get(argv[0])
        if handler is None:
            return 0, ""
        result = handler(argv)
        if isinstance(result, int):
            return result, ""
        return result

    def programs(self):
        return [strip_sudo(cmd)[0] for cmd in self.commands]

    def find(self, program):
        return [strip_sudo(cmd) for cmd in self.commands if strip_sudo(cmd)[0] == program]


def fake_tool_handlers(toc_output=TOC_OUTPUT):
    """Handlers emulating mount, osirrox, rsync, xorriso, skopeo and rm."""

    def mount(argv):
        populate_iso_tree(argv[-1])
        return 0

    def osirrox(argv):
        populate_iso_tree(argv[-1])
        return 0

    def rsync(argv):
        shutil.copytree(argv[-2].rstrip("/"), argv[-1].rstrip("/"), dirs_exist_ok=True)
        return 0

    def xorriso(argv):
        if "-toc" in argv:
            return 0, toc_output
        out = argv[argv.index("-o") + 1]
        with open(out, "wb") as f:
            f.write(b"ISO9660")
        return 0

    def skopeo(argv):
        out = argv[-1][len("oci-archive:"):]
        with open(out, "wb") as f:
            f.write(b"oci-archive")
        return 0

    def rm(argv):
        shutil.rmtree(argv[-1], ignore_errors=True)
        return 0

    return {
        "mount": mount,
        "osirrox": osirrox,
        "rsync": rsync,
        "xorriso": xorriso,
        "skopeo": skopeo,
        "rm": rm,
    }


@pytest.fixture
def logger():
    return logging.getLogger("ove-iso-builder-test")


@pytest.fixture
def cmd_util(logger):
    return FakeCommandUtils(logger, fake_tool_handlers())


@pytest.fixture
def privileged(cmd_util):
    return PrivilegedExecutor(cmd_util, prefix=["sudo"])


@pytest.fixture
def working_space(tmp_path):
    ws = WorkingSpace(str(tmp_path / "iso_builder"))
    ws.setup()
    return ws


@pytest.fixture
def base_image(working_space):
    with open(working_space.base_image, "wb") as f:
        f.write(b"\x00" * 4096)
    return working_space.base_image
