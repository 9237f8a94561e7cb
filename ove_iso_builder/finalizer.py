# /*
# * Copyright © 2023 VMware, Inc.
# * SPDX-License-Identifier: Apache-2.0 OR GPL-2.0-only
# */
# pylint: disable=missing-docstring

import os
import shutil
import time

from ove_iso_builder.errors import FinalizationFailedError


def format_elapsed(seconds):
    minutes, seconds = divmod(int(seconds), 60)
    if minutes:
        return f"{minutes}m {seconds}s"
    return f"{seconds}s"


def finalize(output_image, start_time, cmd_util, logger):
    """
    Add a hybrid MBR to output_image so it also boots when written to a
    disk, and log how long the build took. Returns the elapsed seconds.
    """
    if not os.path.isfile(output_image):
        raise FinalizationFailedError(f"{output_image} does not exist")

    retval = cmd_util.run(["isohybrid", "--uefi", output_image])
    if retval != 0:
        raise FinalizationFailedError(f"isohybrid failed on {output_image} with exit code {retval}")

    logger.info(f"Generated agent based installer OVE ISO at: {output_image}")
    elapsed = time.monotonic() - start_time
    logger.info(f"ISOBuilder execution time: {format_elapsed(elapsed)}")
    return elapsed


def relocate_and_prune(working_space, cmd_util, logger):
    """
    Move the image to the top of the working directory and remove the
    extracted tree.
    """
    logger.info(f"Moving {working_space.output_iso} to {working_space.final_iso}")
    try:
        shutil.move(working_space.output_iso, working_space.final_iso)
    except OSError as e:
        raise FinalizationFailedError(f"Failed to move {working_space.output_iso}: {e}")

    logger.info(f"Removing {working_space.work_dir}")
    try:
        cmd_util.remove_files([working_space.work_dir])
    except OSError as e:
        raise FinalizationFailedError(str(e))
    return working_space.final_iso
