#
# Copyright © 2023 VMware, Inc.
# SPDX-License-Identifier: Apache-2.0 OR GPL-2.0-only
#

import os

import pytest

from ove_iso_builder.commandutils import CommandUtils
from ove_iso_builder.privilege import PrivilegedExecutor, invoking_owner
from ove_iso_builder.workspace import StageState, WorkingSpace, atomic_path, stage_state


class TestWorkingSpace:
    def test_layout(self):
        ws = WorkingSpace("/tmp/iso_builder")
        assert ws.base_image == "/tmp/iso_builder/rhcos.iso"
        assert ws.mount_dir == "/tmp/iso_builder/isomnt"
        assert ws.work_dir == "/tmp/iso_builder/ove/work"
        assert ws.output_iso == "/tmp/iso_builder/ove/output/agent.iso"
        assert ws.final_iso == "/tmp/iso_builder/agent.iso"
        assert not ws.is_host_root()

    def test_container_layout(self):
        ws = WorkingSpace("/")
        assert ws.is_host_root()
        assert ws.base_image == "/rhcos.iso"
        assert ws.work_dir == "/ove/work"

    def test_setup(self, tmp_path):
        ws = WorkingSpace(str(tmp_path / "a" / "b"))
        ws.setup()
        ws.setup()
        assert os.path.isdir(ws.output_dir)
        assert not os.path.exists(ws.work_dir)


class TestStageState:
    def test_marker(self, tmp_path):
        marker = tmp_path / "work"
        assert stage_state(str(marker)) == StageState.ABSENT
        marker.mkdir()
        assert stage_state(str(marker)) == StageState.COMPLETE


class TestAtomicPath:
    def test_rename_on_success(self, tmp_path):
        target = tmp_path / "out" / "file.tar"
        with atomic_path(str(target)) as tmp:
            assert tmp != str(target)
            with open(tmp, "wb") as f:
                f.write(b"data")
            assert not target.exists()
        assert target.read_bytes() == b"data"
        assert os.listdir(target.parent) == ["file.tar"]

    def test_removed_on_error(self, tmp_path):
        target = tmp_path / "file.tar"
        with pytest.raises(RuntimeError):
            with atomic_path(str(target)) as tmp:
                with open(tmp, "wb") as f:
                    f.write(b"half")
                raise RuntimeError("interrupted")
        assert os.listdir(tmp_path) == []

    def test_empty_result_is_an_error(self, tmp_path):
        target = tmp_path / "file.tar"
        with pytest.raises(OSError):
            with atomic_path(str(target)) as tmp:
                open(tmp, "wb").close()
        assert os.listdir(tmp_path) == []

    def test_leftover_from_interrupted_run_is_replaced(self, tmp_path):
        target = tmp_path / "rhcos.iso"
        (tmp_path / ".rhcos.iso.part").write_bytes(b"stale")

        with atomic_path(str(target)) as tmp:
            assert os.path.basename(tmp) == ".rhcos.iso.part"
            assert not os.path.exists(tmp)
            with open(tmp, "wb") as f:
                f.write(b"iso")

        assert os.listdir(tmp_path) == ["rhcos.iso"]
        assert target.read_bytes() == b"iso"


class TestPrivilegedExecutor:
    def test_root_runs_directly(self, cmd_util):
        privileged = PrivilegedExecutor.detect(cmd_util, euid=0)
        assert not privileged.elevated
        assert privileged.wrap(["mount", "-o", "loop"]) == ["mount", "-o", "loop"]

    def test_user_uses_sudo(self, cmd_util):
        privileged = PrivilegedExecutor.detect(cmd_util, euid=1000)
        assert privileged.elevated
        privileged.run(["umount", "/mnt"])
        assert cmd_util.commands == [["sudo", "umount", "/mnt"]]

    def test_invoking_owner(self):
        user, group = invoking_owner().split(":")
        assert user and group


class TestCommandUtils:
    def test_run_output(self, logger):
        retval, out = CommandUtils(logger).run_output(["echo", "hello"])
        assert retval == 0
        assert out == "hello\n"

    def test_run_failure(self, logger):
        assert CommandUtils(logger).run(["false"]) != 0

    def test_missing_program(self, logger):
        assert CommandUtils(logger).run(["ove-iso-builder-no-such-program"]) == -1

    def test_remove_files(self, tmp_path, logger):
        (tmp_path / "tree" / "images").mkdir(parents=True)
        (tmp_path / "tree" / "images" / "a.tar").write_bytes(b"a")
        (tmp_path / "file.iso").write_bytes(b"b")

        CommandUtils(logger).remove_files([str(tmp_path / "tree"), str(tmp_path / "*.iso"), str(tmp_path / "none")])

        assert os.listdir(tmp_path) == []

    def test_invalid_url(self, tmp_path):
        assert CommandUtils.wget("not a url", str(tmp_path / "out")) == (False, "Invalid URL")
        assert CommandUtils.wget("http://example.com/x", str(tmp_path / "out"), enforce_https=True) == (
            False, "URL must be of secure origin (HTTPS)"
        )

    def test_read_config_without_params(self, tmp_path):
        config = tmp_path / "ove.yaml"
        config.write_text("rhcos_url: !param url=https://default/rhcos.iso\n")

        with open(config) as f:
            first = CommandUtils.readConfig(f)
        with open(config) as f:
            second = CommandUtils.readConfig(f, params={"url": "https://other/rhcos.iso"})
        with open(config) as f:
            third = CommandUtils.readConfig(f)

        assert first == third == {"rhcos_url": "https://default/rhcos.iso"}
        assert second == {"rhcos_url": "https://other/rhcos.iso"}
