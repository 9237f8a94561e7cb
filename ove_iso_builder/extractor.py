# /*
# * Copyright © 2023 VMware, Inc.
# * SPDX-License-Identifier: Apache-2.0 OR GPL-2.0-only
# */
# pylint: disable=invalid-name,missing-docstring

import os

from ove_iso_builder.acquirer import ensure_base_image
from ove_iso_builder.errors import ExtractionFailedError, VolumeLabelMissingError
from ove_iso_builder.privilege import invoking_owner
from ove_iso_builder.workspace import StageState, stage_state


class ExtractionStrategy(object):
    """
    How the contents of the base image are made readable in the scratch
    directory before they are copied into the writable tree.
    """
    name = None

    def __init__(self, working_space, privileged, logger):
        self.ws = working_space
        self.privileged = privileged
        self.logger = logger

    def run_checked(self, cmd):
        retval = self.privileged.run(cmd)
        if retval != 0:
            raise ExtractionFailedError(
                f"Following command failed to execute: {' '.join(cmd)}",
                command=cmd,
                return_code=retval,
            )

    def stage(self):
        """Called once when the scratch directory is first created."""

    def populate(self):
        """Called right before the scratch directory is copied."""

    def release(self):
        """Called after the copy finished."""


class MountExtraction(ExtractionStrategy):
    name = "mount"

    def __init__(self, working_space, privileged, logger):
        super().__init__(working_space, privileged, logger)
        self.mounted = False

    def _is_mounted(self):
        return self.mounted or os.path.ismount(self.ws.mount_dir)

    def _mount(self):
        self.run_checked(["mount", "-o", "loop", self.ws.base_image, self.ws.mount_dir])
        self.mounted = True

    def stage(self):
        self._mount()

    def populate(self):
        # a reused scratch directory is no longer mounted after a reboot
        if not self._is_mounted():
            self.logger.info(f"{self.ws.mount_dir} is not mounted, mounting {self.ws.base_image}")
            self._mount()

    def release(self):
        if self._is_mounted():
            self.run_checked(["umount", self.ws.mount_dir])
            self.mounted = False


class DirectExtraction(ExtractionStrategy):
    """
    Reads the image with osirrox, for environments where loop devices
    are not available.
    """
    name = "osirrox"

    def populate(self):
        self.run_checked(["osirrox", "-indev", self.ws.base_image, "-extract", "/", self.ws.mount_dir])


def select_strategy(working_space, privileged, logger):
    if working_space.is_host_root():
        return DirectExtraction(working_space, privileged, logger)
    return MountExtraction(working_space, privileged, logger)


def parse_volume_label(toc_output):
    """
    Return the volume id from `xorriso -toc` output, e.g. from

        ISO session  :   1 ,        32 ,    522580s , rhcos-417.94.202410090854-0

    or None when there is no session line with a volume id.
    """
    for line in toc_output.splitlines():
        if "ISO session" not in line:
            continue
        fields = line.split(",")
        if len(fields) < 4:
            continue
        label = fields[3].strip()
        if label:
            return label
    return None


def read_volume_label(iso_path, cmd_util):
    retval, out = cmd_util.run_output(["xorriso", "-indev", iso_path, "-toc"], log_output=False)
    label = parse_volume_label(out) if retval == 0 else None
    if not label:
        raise VolumeLabelMissingError(iso_path)
    return label


class TreeExtractor(object):
    def __init__(self, working_space, cmd_util, privileged, logger,
                 source_url=None, sha256=None, fingerprint=None, strategy=None):
        self.ws = working_space
        self.cmd_util = cmd_util
        self.privileged = privileged
        self.logger = logger
        self.source_url = source_url
        self.sha256 = sha256
        self.fingerprint = fingerprint
        self.strategy = strategy or select_strategy(working_space, privileged, logger)
        self.volume_label = None

    def _ensure_base_image(self):
        if not os.path.isfile(self.ws.base_image):
            self.logger.info(f"Base image not found at {self.ws.base_image}")
        ensure_base_image(
            self.ws.base_image,
            self.source_url,
            logger=self.logger,
            sha256=self.sha256,
            fingerprint=self.fingerprint,
        )

    def stage_scratch(self):
        if stage_state(self.ws.mount_dir) == StageState.COMPLETE:
            self.logger.info(f"Skip extracting base image. Reusing {self.ws.mount_dir}.")
            return
        self.logger.info(f"Extracting ISO contents using {self.strategy.name}...")
        self._ensure_base_image()
        os.makedirs(self.ws.mount_dir)
        try:
            self.strategy.stage()
        except ExtractionFailedError:
            os.rmdir(self.ws.mount_dir)
            raise

    def materialize_tree(self):
        if stage_state(self.ws.work_dir) == StageState.COMPLETE:
            self.logger.info(
                f"Skip copying extracted ISO contents to a writable directory. Reusing {self.ws.work_dir}."
            )
            return
        self._ensure_base_image()
        os.makedirs(self.ws.work_dir)
        try:
            self.strategy.populate()
            self.logger.info("Copying extracted ISO contents to a writable directory.")
            self.strategy.run_checked(["rsync", "-aH", f"{self.ws.mount_dir}/", f"{self.ws.work_dir}/"])
            self.strategy.run_checked(["chown", "-R", invoking_owner(), f"{self.ws.work_dir}/"])
        except ExtractionFailedError:
            # an incomplete tree must not look complete to the next run
            if self.privileged.run(["rm", "-rf", self.ws.work_dir]) != 0:
                self.logger.error(f"Failed to remove incomplete {self.ws.work_dir}")
            raise
        self.strategy.release()

    def extract(self):
        self.stage_scratch()
        self.materialize_tree()
        self._ensure_base_image()
        self.volume_label = read_volume_label(self.ws.base_image, self.cmd_util)
        self.logger.info(f"Base image volume label: {self.volume_label}")
        return self.ws.work_dir
