# /*
#  * Copyright © 2020 VMware, Inc.
#  * SPDX-License-Identifier: Apache-2.0 OR GPL-2.0-only
#  */
#

import glob
import hashlib
import os
import shutil
import ssl
import subprocess
from urllib.parse import urlparse

import requests
import yaml
from OpenSSL.crypto import FILETYPE_PEM, load_certificate

from ove_iso_builder.workspace import atomic_path


class CommandUtils(object):
    HTTP_TIMEOUT = (10.0, 60.0)
    CHUNK_SIZE = 1024 * 1024

    def __init__(self, logger):
        self.logger = logger

    def run(self, cmd):
        """
        Run cmd, streaming its combined output into the log.
        Returns the exit code, or -1 if the process could not be started.
        """
        retval, _ = self.run_output(cmd)
        return retval

    def run_output(self, cmd, log_output=True):
        try:
            self.logger.info(f"running {cmd}")
            use_shell = not isinstance(cmd, list)

            with subprocess.Popen(
                cmd, shell=use_shell, text=True,
                stdout=subprocess.PIPE, stderr=subprocess.STDOUT
            ) as process:
                out = ""
                if process.stdout:
                    for line in process.stdout:
                        if log_output:
                            self.logger.info(line.rstrip())
                        out += line

                retval = process.wait()

                if retval != 0:
                    self.logger.error(f"Command failed: {cmd}")
                    self.logger.error(f"Error code: {retval}")

                return retval, out

        except (OSError, subprocess.SubprocessError) as e:
            self.logger.error(f"Error running {cmd}: {e}")
            return -1, ""

    # check if url is a URL (note: a file path is not a URL)
    @staticmethod
    def is_url(url):
        try:
            result = urlparse(url)
            return all([result.scheme, result.netloc])
        except Exception:
            return False

    @staticmethod
    def _requests_get(url, verify):
        return requests.get(url, verify=verify, stream=True, timeout=CommandUtils.HTTP_TIMEOUT)

    @staticmethod
    def _server_fingerprint(u):
        port = u.port
        if port is None:
            port = 443
        pem = ssl.get_server_certificate((u.hostname, port))
        cert = load_certificate(FILETYPE_PEM, pem.encode('utf-8'))
        return cert.digest("sha1").decode()

    @staticmethod
    def wget(url, out, enforce_https=False, fingerprint=None, sha256=None):
        """
        Stream url into out.

        The data is written to a temporary file next to out and renamed
        onto out only after the whole body was received (and matched sha256,
        if given), so out either does not exist or is complete.

        Returns a (success, error message) tuple.
        """
        try:
            u = urlparse(url)
        except Exception:
            return False, "Failed to parse URL"
        if not all([u.scheme, u.netloc]):
            return False, "Invalid URL"
        if enforce_https and u.scheme != "https":
            return False, "URL must be of secure origin (HTTPS)"

        try:
            r = CommandUtils._requests_get(url, True)
        except requests.exceptions.SSLError:
            if fingerprint is None:
                return False, "Unable to verify server certificate"
            try:
                fp = CommandUtils._server_fingerprint(u)
            except Exception as e:
                return False, f"Failed to get server certificate: {e}"
            if fingerprint != fp:
                return False, "Server fingerprint did not match provided. Got: " + fp
            # download without validation, the fingerprint was checked above
            try:
                r = CommandUtils._requests_get(url, False)
            except requests.exceptions.RequestException as e:
                return False, f"Failed to download file: {e}"
        except requests.exceptions.RequestException as e:
            return False, f"Failed to download file: {e}"

        with r:
            try:
                r.raise_for_status()
            except requests.exceptions.HTTPError as e:
                return False, str(e)

            digest = hashlib.sha256()
            try:
                with atomic_path(out) as tmp_out:
                    with open(tmp_out, "wb") as f:
                        for chunk in r.iter_content(chunk_size=CommandUtils.CHUNK_SIZE):
                            digest.update(chunk)
                            f.write(chunk)
                    if sha256 is not None and digest.hexdigest() != sha256.lower():
                        raise ValueError(
                            f"sha256 mismatch: expected {sha256.lower()}, got {digest.hexdigest()}"
                        )
            except requests.exceptions.RequestException as e:
                return False, f"Download interrupted: {e}"
            except (OSError, ValueError) as e:
                return False, str(e)

        return True, None

    @staticmethod
    def _yaml_param(loader, node):
        params = loader.app_params
        default = None
        key = node.value

        assert type(key) is str, "param name must be a string"

        if '=' in key:
            key, default = [t.strip() for t in key.split('=', maxsplit=1)]

            if key in params:
                value = params[key]
            else:
                value = yaml.safe_load(default)
        else:
            assert key in params, f"no param set for '{key}', and there is no default"
            value = params[key]

        return value

    @staticmethod
    def readConfig(stream, params=None):
        class ParamLoader(yaml.SafeLoader):
            def __init__(self, stream):
                super().__init__(stream)
                self.app_params = params or {}

        yaml.add_constructor("!param", CommandUtils._yaml_param, Loader=ParamLoader)
        config = yaml.load(stream, Loader=ParamLoader)

        return config

    def remove_files(self, file_list):
        """
        Remove files, links and directory trees matching the given glob
        patterns. Patterns matching nothing are ignored.
        """
        for file_path in file_list:
            for file in glob.glob(file_path):
                try:
                    if os.path.islink(file) or os.path.isfile(file):
                        os.remove(file)
                    elif os.path.isdir(file):
                        shutil.rmtree(file)
                    else:
                        self.logger.info(f"File format not identified for: {file}")
                except FileNotFoundError:
                    self.logger.info(f"File path not found: {file}")
                except OSError as e:
                    raise OSError(f"Error removing {file}: {e}") from e
