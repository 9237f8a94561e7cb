#!/usr/bin/env python3

#
# Copyright © 2020-2023 VMware, Inc.
# SPDX-License-Identifier: Apache-2.0 OR GPL-2.0-only
#

__all__ = ('get_builder_version',)

# Used when the source tree is not a git checkout.
defaultTag = "1.0"

import subprocess


def _git(*args):
    result = subprocess.run(
        ['git', *args], stdout=subprocess.PIPE, stderr=subprocess.DEVNULL, text=True
    )
    if result.returncode != 0:
        return None
    return result.stdout.strip()


def get_builder_version():
    """
    Local version label: "<latest tag>.<short sha>[.dirty]", or the
    default tag outside of a git checkout.
    """
    try:
        sha = _git('rev-parse', '--short', 'HEAD')
    except FileNotFoundError:
        return defaultTag
    if not sha:
        return defaultTag

    tag = _git('describe', '--tags', '--abbrev=0') or defaultTag
    version = f"{tag.lstrip('v')}.{sha}"
    if _git('diff-index', '--name-only', 'HEAD'):
        version += '.dirty'
    return version


if __name__ == '__main__':
    print(get_builder_version())
