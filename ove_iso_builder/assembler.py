# /*
# * Copyright © 2023 VMware, Inc.
# * SPDX-License-Identifier: Apache-2.0 OR GPL-2.0-only
# */
# pylint: disable=missing-docstring

import os

from ove_iso_builder.defaults import Defaults
from ove_iso_builder.errors import AssemblyFailedError, MissingBootImageError
from ove_iso_builder.workspace import StageState, atomic_path, stage_state


def boot_load_size(size, sector_size=Defaults.SECTOR_SIZE):
    """
    Number of sector_size sectors needed to hold size bytes, rounded up.
    """
    return (size + sector_size - 1) // sector_size


class BootMetadata(object):
    def __init__(self, boot_image):
        self.boot_image = boot_image
        self.size = os.stat(boot_image).st_size
        self.sector_count = boot_load_size(self.size)


def mkisofs_command(tree, output_path, volume_label, metadata):
    return [
        "xorriso", "-as", "mkisofs",
        "-o", output_path,
        "-J", "-R", "-V", volume_label,
        "-b", Defaults.BIOS_BOOT_IMAGE,
        "-c", Defaults.BIOS_BOOT_CATALOG,
        "-no-emul-boot", "-boot-load-size", str(Defaults.BIOS_BOOT_LOAD_SIZE), "-boot-info-table",
        "-eltorito-alt-boot",
        "-e", Defaults.UEFI_BOOT_IMAGE,
        "-no-emul-boot", "-boot-load-size", str(metadata.sector_count),
        tree,
    ]


def assemble(tree, output_path, volume_label, cmd_util, logger, working_directory=None):
    """
    Author output_path from tree with a BIOS (isolinux) and a UEFI
    El Torito boot entry. An existing output_path is left untouched.
    """
    if stage_state(output_path) == StageState.COMPLETE:
        logger.info(f"Skip creating {output_path}. It already exists.")
        return False

    boot_image = os.path.join(tree, Defaults.UEFI_BOOT_IMAGE)
    if not os.path.isfile(boot_image):
        raise MissingBootImageError(boot_image, working_directory or os.path.dirname(tree))

    metadata = BootMetadata(boot_image)
    logger.debug(f"{boot_image} is {metadata.size} bytes, {metadata.sector_count} sectors")

    logger.info(f"Creating {output_path}.")
    try:
        with atomic_path(output_path) as tmp_output:
            cmd = mkisofs_command(tree, tmp_output, volume_label, metadata)
            retval = cmd_util.run(cmd)
            if retval != 0:
                raise AssemblyFailedError(
                    f"Failed to create {output_path}",
                    command=cmd,
                    return_code=retval,
                )
    except OSError as e:
        raise AssemblyFailedError(f"Failed to create {output_path}: {e}")
    return True
