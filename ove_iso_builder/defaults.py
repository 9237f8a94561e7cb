# /*
#  * Copyright © 2020-2023 VMware, Inc.
#  * SPDX-License-Identifier: Apache-2.0 OR GPL-2.0-only
#  */

class Defaults():
    WORKING_DIRECTORY = "/tmp/iso_builder"
    LOG_DIR_NAME = "LOGS"
    LOG_LEVEL = "info"

    BASE_ISO_NAME = "rhcos.iso"
    MOUNT_DIR_NAME = "isomnt"
    OVE_DIR_NAME = "ove"
    OUTPUT_ISO_NAME = "agent.iso"

    # relative to the extracted tree
    BIOS_BOOT_IMAGE = "isolinux/isolinux.bin"
    BIOS_BOOT_CATALOG = "isolinux/boot.cat"
    BIOS_BOOT_LOAD_SIZE = 4
    UEFI_BOOT_IMAGE = "images/efiboot.img"
    ARTIFACTS_DIR = "images"

    SECTOR_SIZE = 2048

    AGENT_IMAGE = (
        "quay.io/redhat-user-workloads/assisted-migration-tenant/"
        "migration-planner-agent:213e597ae9b6d7cff7adddb8dc2e87f9dcc03dcc"
    )

    # environment variables, overridden by the command line
    ENV_SOURCE_URL = "RHCOS_URL"
    ENV_WORKING_DIRECTORY = "DIR_PATH"
    ENV_SOURCE_SHA256 = "RHCOS_SHA256"
