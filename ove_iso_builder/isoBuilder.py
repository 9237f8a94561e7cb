#!/usr/bin/env python3
#
# Copyright © 2023 VMware, Inc.
# SPDX-License-Identifier: Apache-2.0 OR GPL-2.0-only
#
# pylint: disable=invalid-name,missing-docstring,no-member


import os
import shutil
import sys
import tempfile
import time
import traceback
from argparse import ArgumentParser, RawDescriptionHelpFormatter

import yaml

from ove_iso_builder.assembler import assemble
from ove_iso_builder.commandutils import CommandUtils
from ove_iso_builder.defaults import Defaults
from ove_iso_builder.errors import ArgumentError, IsoBuilderError, StageFailedError
from ove_iso_builder.extractor import TreeExtractor
from ove_iso_builder.finalizer import finalize, relocate_and_prune
from ove_iso_builder.injector import ArtifactRef, inject_artifact
from ove_iso_builder.logger import Logger
from ove_iso_builder.pipeline import Stage, run_pipeline
from ove_iso_builder.privilege import PrivilegedExecutor
from ove_iso_builder.workspace import StageState, WorkingSpace, stage_state


class OveIsoBuilder(object):
    def __init__(self, **kwargs):
        self.rhcos_url = None
        self.rhcos_sha256 = None
        self.rhcos_cert_fingerprint = None
        self.working_dir = Defaults.WORKING_DIRECTORY
        self.agent_image = Defaults.AGENT_IMAGE
        self.log_level = Defaults.LOG_LEVEL
        self.logger = None
        self.cmdUtil = None
        self.privileged = None
        self.__dict__.update(kwargs)

        self.ws = WorkingSpace(self.working_dir)
        if self.logger is None:
            self.logger = Logger.get_logger(self.ws.log_dir, self.log_level, True)
        if self.cmdUtil is None:
            self.cmdUtil = CommandUtils(self.logger)
        if self.privileged is None:
            self.privileged = PrivilegedExecutor.detect(self.cmdUtil)

        self.artifact = ArtifactRef.parse(self.agent_image)
        self.extractor = TreeExtractor(
            self.ws,
            self.cmdUtil,
            self.privileged,
            self.logger,
            source_url=self.rhcos_url,
            sha256=self.rhcos_sha256,
            fingerprint=self.rhcos_cert_fingerprint,
        )
        self.start_time = None
        self.elapsed = None

    def setup(self):
        self.logger.info(f"Creating working directory: {self.ws.root}")
        self.ws.setup()
        if self.privileged.elevated:
            self.logger.info("Not running as root, privileged commands use sudo")

    def extract(self):
        self.extractor.extract()

    def injectArtifacts(self):
        inject_artifact(self.ws.work_dir, self.artifact, self.privileged, self.logger)

    def createIso(self):
        assemble(
            self.ws.work_dir,
            self.ws.output_iso,
            self.extractor.volume_label,
            self.cmdUtil,
            self.logger,
            working_directory=self.ws.root,
        )

    def finalize(self):
        self.elapsed = finalize(self.ws.output_iso, self.start_time, self.cmdUtil, self.logger)

    def cleanup(self):
        relocate_and_prune(self.ws, self.cmdUtil, self.logger)

    def stages(self):
        return [
            Stage("setup", self.setup),
            Stage("extract", self.extract),
            Stage("inject", self.injectArtifacts),
            Stage("assemble", self.createIso),
            Stage("finalize", self.finalize),
            Stage("cleanup", self.cleanup),
        ]

    def build(self):
        """
        Build the agent OVE ISO. A build that already produced
        <dir>/agent.iso is not repeated; remove it to rebuild.
        """
        self.start_time = time.monotonic()
        if stage_state(self.ws.final_iso) == StageState.COMPLETE and \
                stage_state(self.ws.output_iso) == StageState.ABSENT:
            self.logger.info(f"Skip building. {self.ws.final_iso} already exists, remove it to rebuild.")
            return run_pipeline([], self.logger)
        return run_pipeline(self.stages(), self.logger)


class BuilderArgumentParser(ArgumentParser):
    def error(self, message):
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: error: {message}\n")


DESCRIPTION = """\
Agent-based Installer OVE ISO Builder

Creates an agent-based installer OVE ISO by extracting RHCOS ISO contents,
adding agent installer artifacts, and creating a bootable hybrid ISO image.
"""

EPILOG = f"""\
environment variables:
  {Defaults.ENV_SOURCE_URL}               URL to download RHCOS ISO if not found locally
  {Defaults.ENV_WORKING_DIRECTORY}                Working directory path (overridden by --dir)
  {Defaults.ENV_SOURCE_SHA256}            Expected sha256 of the RHCOS ISO (overridden by --rhcos-sha256)

examples:
  # expects rhcos.iso to exist or {Defaults.ENV_SOURCE_URL} to be set
  ove-iso-builder

  ove-iso-builder --rhcos-url https://example.com/rhcos.iso
  ove-iso-builder --dir ~/iso_work

outputs:
  agent.iso               Bootable agent OVE ISO image
"""


def get_parser():
    parser = BuilderArgumentParser(
        prog="ove-iso-builder",
        description=DESCRIPTION,
        epilog=EPILOG,
        formatter_class=RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--rhcos-url",
        dest="rhcos_url",
        default=None,
        help="URL to download RHCOS ISO (optional)",
    )
    parser.add_argument(
        "--dir",
        dest="working_dir",
        default=None,
        help=f"Working directory path (default: {Defaults.WORKING_DIRECTORY})",
    )
    parser.add_argument(
        "--rhcos-sha256",
        dest="rhcos_sha256",
        default=None,
        help="<Optional> Expected sha256 of the downloaded RHCOS ISO.",
    )
    parser.add_argument(
        "--rhcos-cert-fingerprint",
        dest="rhcos_cert_fingerprint",
        default=None,
        help="<Optional> SHA-1 fingerprint of the download server certificate, used when it cannot be verified.",
    )
    parser.add_argument(
        "--agent-image",
        dest="agent_image",
        default=None,
        help="<Optional> Agent container image to embed in the ISO.",
    )
    parser.add_argument("-l", "--log-level", dest="log_level", default=None)
    parser.add_argument(
        "-y",
        "--config",
        dest="config",
        type=str,
        default="",
        help="Path or URL to the configuration YAML file",
    )
    parser.add_argument(
        "-m",
        "--param",
        dest="params",
        action="append",
        default=[],
        help="Specify a parameter value. This option can be used multiple times to provide multiple parameter values.",
    )
    return parser


CONFIG_KEYS = {
    "rhcos_url": "rhcos_url",
    "dir": "working_dir",
    "rhcos_sha256": "rhcos_sha256",
    "rhcos_cert_fingerprint": "rhcos_cert_fingerprint",
    "agent_image": "agent_image",
    "log_level": "log_level",
}

ENV_KEYS = {
    Defaults.ENV_SOURCE_URL: "rhcos_url",
    Defaults.ENV_WORKING_DIRECTORY: "working_dir",
    Defaults.ENV_SOURCE_SHA256: "rhcos_sha256",
}


def load_config(config, params_list):
    """
    Read the YAML config at config (a path or a URL). Values may use
    `!param name=default`, filled from the key=value strings in params_list.
    """
    params = {}
    for p in params_list:
        if "=" not in p:
            raise ArgumentError(f"parameter '{p}' must be of the form key=value")
        k, v = p.split("=", maxsplit=1)
        params[k] = yaml.safe_load(v)

    temp_dir = None
    try:
        if not os.path.isfile(config):
            if not CommandUtils.is_url(config):
                raise ArgumentError(f"config file '{config}' not found")
            temp_dir = tempfile.mkdtemp(prefix="ove-iso-builder-")
            temp_file_path = os.path.join(temp_dir, "config.yaml")
            retval, msg = CommandUtils.wget(config, temp_file_path)
            if not retval:
                raise ArgumentError(f"Error - {msg}")
            config = temp_file_path

        with open(config, "r") as f:
            try:
                data = CommandUtils.readConfig(f, params=params) or {}
            except (yaml.YAMLError, AssertionError) as e:
                raise ArgumentError(f"invalid config file: {e}")
    finally:
        if temp_dir:
            shutil.rmtree(temp_dir, ignore_errors=True)

    if not isinstance(data, dict):
        raise ArgumentError("config file must contain a mapping")
    unknown = set(data) - set(CONFIG_KEYS)
    if unknown:
        raise ArgumentError(f"unknown config keys: {', '.join(sorted(unknown))}")
    return {CONFIG_KEYS[k]: v for k, v in data.items() if v is not None}


def resolve_options(options, environ=None):
    """
    Merge settings: command line over environment over YAML config over
    defaults. Returns keyword arguments for OveIsoBuilder.
    """
    if environ is None:
        environ = os.environ

    settings = {}
    if options.config:
        settings.update(load_config(options.config, options.params))
    elif options.params:
        raise ArgumentError("--param requires --config")

    for env, dest in ENV_KEYS.items():
        if environ.get(env):
            settings[dest] = environ[env]

    for dest in [
        "rhcos_url", "working_dir", "rhcos_sha256", "rhcos_cert_fingerprint", "agent_image", "log_level"
    ]:
        value = getattr(options, dest)
        if value:
            settings[dest] = value

    if settings.get("working_dir"):
        settings["working_dir"] = os.path.expanduser(settings["working_dir"])
    return settings


def main(argv=None):
    parser = get_parser()
    options = parser.parse_args(argv)

    try:
        settings = resolve_options(options)
        isoBuilder = OveIsoBuilder(**settings)
    except IsoBuilderError as err:
        print(err.diagnostic(), file=sys.stderr)
        parser.print_usage(sys.stderr)
        return 1
    except ValueError as err:
        print(f"Error: {err}", file=sys.stderr)
        return 1
    except OSError as err:
        print(StageFailedError("setup", err).diagnostic(), file=sys.stderr)
        return 1

    try:
        result = isoBuilder.build()
    except Exception:
        traceback.print_exc()
        return 1

    if not result.success:
        print(result.error.diagnostic(), file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
