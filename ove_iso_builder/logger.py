# /*
#  * Copyright © 2020-2023 VMware, Inc.
#  * SPDX-License-Identifier: Apache-2.0 OR GPL-2.0-only
#  */
#

import logging
import os
import sys


class Logger(object):
    LOGGER_NAME = "ove-iso-builder"
    LOG_FILE_NAME = "ove-iso-builder.log"
    LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"

    @staticmethod
    def get_logger(log_path=None, log_level="info", console=True):
        """
        Return the builder logger, attaching handlers on first use.

        log_path is a directory; the log file is created inside it.
        Calling again with the same arguments returns the configured logger
        without adding duplicate handlers.
        """
        logger = logging.getLogger(Logger.LOGGER_NAME)
        logger.setLevel(Logger._level(log_level))

        if getattr(logger, "_ove_configured", False):
            return logger

        formatter = logging.Formatter(Logger.LOG_FORMAT)
        if log_path:
            os.makedirs(log_path, exist_ok=True)
            file_handler = logging.FileHandler(os.path.join(log_path, Logger.LOG_FILE_NAME))
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)

        if console:
            console_handler = logging.StreamHandler(sys.stdout)
            console_handler.setFormatter(formatter)
            logger.addHandler(console_handler)

        logger._ove_configured = True
        return logger

    @staticmethod
    def _level(log_level):
        if isinstance(log_level, int):
            return log_level
        level = logging.getLevelName(str(log_level).upper())
        if not isinstance(level, int):
            raise ValueError(f"unknown log level '{log_level}'")
        return level
