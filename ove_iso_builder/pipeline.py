# /*
# * Copyright © 2023 VMware, Inc.
# * SPDX-License-Identifier: Apache-2.0 OR GPL-2.0-only
# */
# pylint: disable=missing-docstring

import time

from ove_iso_builder.errors import IsoBuilderError, StageFailedError


class Stage(object):
    def __init__(self, name, func):
        self.name = name
        self.func = func

    def __call__(self):
        return self.func()

    def __repr__(self):
        return f"Stage({self.name!r})"


class PipelineResult(object):
    def __init__(self):
        self.completed = []
        self.failed = None
        self.error = None
        self.durations = {}

    @property
    def success(self):
        return self.failed is None


def run_pipeline(stages, logger):
    """
    Run stages in order and stop at the first one that raises an
    IsoBuilderError. An OSError is reported as a StageFailedError of the
    stage it escaped from. Stages are responsible for skipping work that
    is already done, nothing is retried here.
    """
    result = PipelineResult()
    for stage in stages:
        logger.info(f"=== Stage: {stage.name} ===")
        started = time.monotonic()
        try:
            try:
                stage()
            except OSError as e:
                raise StageFailedError(stage.name, e) from e
        except IsoBuilderError as err:
            result.failed = stage.name
            result.error = err
            logger.error(f"Stage '{stage.name}' failed: {err}")
            if err.remediation:
                logger.error(err.remediation)
            break
        finally:
            result.durations[stage.name] = time.monotonic() - started
        result.completed.append(stage.name)
    return result
