# /*
# * Copyright © 2023 VMware, Inc.
# * SPDX-License-Identifier: Apache-2.0 OR GPL-2.0-only
# */
# pylint: disable=missing-docstring

import os

from ove_iso_builder.commandutils import CommandUtils
from ove_iso_builder.errors import FetchFailedError, MissingSourceError


def ensure_base_image(path, source_url=None, logger=None, sha256=None, fingerprint=None):
    """
    Make sure the base image exists at path, downloading it from
    source_url when it does not.

    An existing file is trusted as is. A downloaded file is only moved
    to path once it is complete, and, when sha256 is given, only if its
    digest matches. Without sha256 the caller is responsible for
    verifying the image.
    """
    if os.path.isfile(path):
        if logger:
            logger.debug(f"Base image found at {path}")
        return

    if not source_url:
        raise MissingSourceError(path)

    if logger:
        logger.info(f"Downloading base image from: {source_url}")
        logger.info(f"Saving to: {path}")

    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    retval, msg = CommandUtils.wget(source_url, path, fingerprint=fingerprint, sha256=sha256)
    if not retval:
        raise FetchFailedError(source_url, msg)

    if logger:
        logger.info("Successfully downloaded base image")
