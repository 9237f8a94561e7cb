# /*
# * Copyright © 2023 VMware, Inc.
# * SPDX-License-Identifier: Apache-2.0 OR GPL-2.0-only
# */
# pylint: disable=invalid-name,missing-docstring

import os
from contextlib import contextmanager
from enum import Enum

from ove_iso_builder.defaults import Defaults


class StageState(Enum):
    ABSENT = 1
    COMPLETE = 2


def stage_state(marker):
    """
    A stage is complete when its marker (file or directory) exists.
    """
    if os.path.lexists(marker):
        return StageState.COMPLETE
    return StageState.ABSENT


@contextmanager
def atomic_path(path):
    """
    Yield a temporary path in the same directory as path. When the block
    exits cleanly the temporary file is renamed onto path, otherwise it is
    removed. Empty results are treated as failures. A temporary file left
    by an interrupted run is discarded first.
    """
    directory = os.path.dirname(os.path.abspath(path))
    os.makedirs(directory, exist_ok=True)
    tmp_path = os.path.join(directory, f".{os.path.basename(path)}.part")
    if os.path.lexists(tmp_path):
        os.remove(tmp_path)
    try:
        yield tmp_path
        if not os.path.exists(tmp_path) or os.path.getsize(tmp_path) == 0:
            raise OSError(f"no data written for {path}")
        os.replace(tmp_path, path)
    finally:
        if os.path.lexists(tmp_path):
            os.remove(tmp_path)


class WorkingSpace(object):
    """
    Paths of one build. Everything lives below `root`:

        <root>/rhcos.iso                  base image, kept between runs
        <root>/isomnt/                    mount point or extraction scratch
        <root>/ove/work/                  writable tree, removed on success
        <root>/ove/output/agent.iso       assembled image
        <root>/agent.iso                  final location of the image

    Only one build may use a given root at a time; the presence checks
    are not locked.
    """

    def __init__(self, root=Defaults.WORKING_DIRECTORY):
        self.root = os.path.abspath(root)
        self.base_image = os.path.join(self.root, Defaults.BASE_ISO_NAME)
        self.mount_dir = os.path.join(self.root, Defaults.MOUNT_DIR_NAME)
        self.ove_dir = os.path.join(self.root, Defaults.OVE_DIR_NAME)
        self.work_dir = os.path.join(self.ove_dir, "work")
        self.output_dir = os.path.join(self.ove_dir, "output")
        self.output_iso = os.path.join(self.output_dir, Defaults.OUTPUT_ISO_NAME)
        self.final_iso = os.path.join(self.root, Defaults.OUTPUT_ISO_NAME)
        self.log_dir = os.path.join(self.root, Defaults.LOG_DIR_NAME)

    def setup(self):
        os.makedirs(self.root, exist_ok=True)
        os.makedirs(self.output_dir, exist_ok=True)

    def is_host_root(self):
        # a working space at / means we run inside a container image
        return self.root == os.path.abspath(os.sep)

    def __repr__(self):
        return f"WorkingSpace({self.root!r})"
