#
# Copyright © 2020-2021 VMware, Inc.
# SPDX-License-Identifier: Apache-2.0 OR GPL-2.0-only
#

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("ove-iso-builder")
except PackageNotFoundError:
    __version__ = "0.0.0"
