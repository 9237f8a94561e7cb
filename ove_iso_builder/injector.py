# /*
# * Copyright © 2023 VMware, Inc.
# * SPDX-License-Identifier: Apache-2.0 OR GPL-2.0-only
# */
# pylint: disable=missing-docstring

import os

from ove_iso_builder.defaults import Defaults
from ove_iso_builder.errors import ArgumentError, InjectionFailedError
from ove_iso_builder.workspace import StageState, atomic_path, stage_state


class ArtifactRef(object):
    """
    A container image in a registry, e.g.
    quay.io/org/migration-planner-agent:213e597 or
    quay.io/org/migration-planner-agent@sha256:...
    """

    def __init__(self, repository, tag=None, digest=None):
        if not repository:
            raise ArgumentError("artifact repository must not be empty")
        self.repository = repository
        self.tag = tag
        self.digest = digest
        self.name = repository.rstrip("/").rsplit("/", 1)[-1]

    @classmethod
    def parse(cls, pull_spec):
        if "@" in pull_spec:
            repository, digest = pull_spec.split("@", 1)
            return cls(repository, digest=digest)
        repository, tag = pull_spec, None
        # a colon before the last slash belongs to a registry port
        if ":" in pull_spec.rsplit("/", 1)[-1]:
            repository, tag = pull_spec.rsplit(":", 1)
        return cls(repository, tag=tag)

    @property
    def pull_spec(self):
        if self.digest:
            return f"{self.repository}@{self.digest}"
        if self.tag:
            return f"{self.repository}:{self.tag}"
        return self.repository

    def archive_path(self, tree):
        return os.path.join(tree, Defaults.ARTIFACTS_DIR, self.name, f"{self.name}.tar")

    def __str__(self):
        return self.pull_spec


def inject_artifact(tree, artifact, privileged, logger):
    """
    Copy artifact from its registry into the tree as an OCI archive.
    Nothing is done when the archive is already there.
    """
    archive = artifact.archive_path(tree)
    if stage_state(archive) == StageState.COMPLETE:
        logger.info(f"Skip pulling image. Reusing {archive}.")
        return archive

    logger.info(f"Pulling {artifact.pull_spec} into {archive}")
    try:
        os.makedirs(os.path.dirname(archive), exist_ok=True)
        with atomic_path(archive) as tmp_archive:
            retval = privileged.run(
                ["skopeo", "copy", "-q", f"docker://{artifact.pull_spec}", f"oci-archive:{tmp_archive}"]
            )
            if retval != 0:
                raise InjectionFailedError(artifact.pull_spec, f"skopeo copy exited with {retval}")
    except OSError as e:
        raise InjectionFailedError(artifact.pull_spec, str(e))
    return archive
