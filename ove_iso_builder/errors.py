# /*
# * Copyright © 2023 VMware, Inc.
# * SPDX-License-Identifier: Apache-2.0 OR GPL-2.0-only
# */
# pylint: disable=missing-docstring

import os


class IsoBuilderError(Exception):
    """Base exception for every build stage failure"""
    stage = None

    def __init__(self, message, remediation=None):
        super().__init__(message)
        self.remediation = remediation

    def diagnostic(self):
        lines = [f"Error in stage '{self.stage}': {self}"]
        if self.remediation:
            lines.append(self.remediation)
        return "\n".join(lines)


class ArgumentError(IsoBuilderError):
    """Raised for invalid command line or configuration input"""
    stage = "arguments"


class MissingSourceError(IsoBuilderError):
    """Raised when the base image is absent and no URL is known"""
    stage = "acquire"

    def __init__(self, path, url_option="--rhcos-url", url_env="RHCOS_URL"):
        self.path = path
        super().__init__(
            f"{path} not found and no source URL is set. Cannot download it.",
            remediation=(
                "Please either:\n"
                f"  1. Set {url_env} environment variable (or {url_option}) to download the ISO\n"
                f"  2. Manually place {os.path.basename(path)} in {os.path.join(os.path.dirname(path) or '.', '')}"
            ),
        )


class FetchFailedError(IsoBuilderError):
    """Raised when downloading the base image fails"""
    stage = "acquire"

    def __init__(self, url, reason):
        self.url = url
        self.reason = reason
        super().__init__(f"Failed to download {url}: {reason}")


class ExtractionFailedError(IsoBuilderError):
    """Raised when an extraction command fails"""
    stage = "extract"

    def __init__(self, message, command=None, return_code=None):
        super().__init__(
            message,
            remediation="Clean the working directory for a clean rebuild.",
        )
        self.command = command
        self.return_code = return_code


class VolumeLabelMissingError(IsoBuilderError):
    """Raised when the ISO volume id cannot be read from the base image"""
    stage = "extract"

    def __init__(self, iso_path):
        self.iso_path = iso_path
        super().__init__(
            f"Unable to read the volume label of {iso_path}",
            remediation="Check that the base image is a valid ISO-9660 image.",
        )


class InjectionFailedError(IsoBuilderError):
    """Raised when the artifact cannot be copied into the tree"""
    stage = "inject"

    def __init__(self, artifact, reason):
        self.artifact = artifact
        super().__init__(f"Failed to stage {artifact}: {reason}")


class MissingBootImageError(IsoBuilderError):
    """Raised when the UEFI boot image is not in the extracted tree"""
    stage = "assemble"

    def __init__(self, boot_image, working_directory):
        self.boot_image = boot_image
        super().__init__(
            f"UEFI boot image {boot_image} not found",
            remediation=f"Clean {working_directory} directory for a clean rebuild.",
        )


class AssemblyFailedError(IsoBuilderError):
    """Raised when authoring the output image fails"""
    stage = "assemble"

    def __init__(self, message, command=None, return_code=None):
        super().__init__(message)
        self.command = command
        self.return_code = return_code


class FinalizationFailedError(IsoBuilderError):
    """Raised when the hybrid MBR patch or relocation fails"""
    stage = "finalize"


class StageFailedError(IsoBuilderError):
    """Raised for an operating system error that escaped a stage"""

    def __init__(self, stage, reason):
        self.stage = stage
        self.reason = reason
        super().__init__(str(reason))
