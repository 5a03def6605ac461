"""Tests for core subprocess utilities."""

import os
import subprocess
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from convertsave.core.subprocess_utils import (
    CommandOutput,
    merged_env,
    run_command,
    run_command_async,
)


class TestRunCommand:
    """Tests for run_command function."""

    def test_returns_streams_and_code(self, linux_platform):
        completed = MagicMock(stdout="hello\n", stderr="", returncode=0)
        with patch(
            "convertsave.core.subprocess_utils.subprocess.run", return_value=completed
        ) as mock_run:
            stdout, stderr, code = run_command(["echo", "hello"], platform=linux_platform)

        assert (stdout, stderr, code) == ("hello\n", "", 0)
        assert mock_run.call_args[0][0] == ["echo", "hello"]

    def test_missing_executable_reports_not_found(self, linux_platform):
        with patch(
            "convertsave.core.subprocess_utils.subprocess.run",
            side_effect=FileNotFoundError(),
        ):
            assert run_command(["nope"], platform=linux_platform) == ("", "not found", -1)

    def test_timeout_propagates(self, linux_platform):
        with patch(
            "convertsave.core.subprocess_utils.subprocess.run",
            side_effect=subprocess.TimeoutExpired(["sleep"], 1),
        ):
            with pytest.raises(subprocess.TimeoutExpired):
                run_command(["sleep", "10"], timeout=1, platform=linux_platform)


class TestRunCommandAsync:
    """Tests for run_command_async."""

    @pytest.mark.asyncio
    async def test_decodes_output(self, linux_platform):
        process = MagicMock()
        process.communicate = AsyncMock(return_value=(b"out", b"err \xff"))
        process.returncode = 3
        with patch(
            "convertsave.core.subprocess_utils.asyncio.create_subprocess_exec",
            AsyncMock(return_value=process),
        ) as mock_exec:
            result = await run_command_async(["magick", "a.png", "b.jpg"], platform=linux_platform)

        assert result.stdout == "out"
        assert result.stderr.startswith("err ")
        assert result.returncode == 3
        assert not result.ok
        assert mock_exec.call_args[0] == ("magick", "a.png", "b.jpg")

    @pytest.mark.asyncio
    async def test_missing_executable_raises(self, linux_platform):
        with patch(
            "convertsave.core.subprocess_utils.asyncio.create_subprocess_exec",
            AsyncMock(side_effect=FileNotFoundError()),
        ):
            with pytest.raises(FileNotFoundError):
                await run_command_async(["missing"], platform=linux_platform)


class TestCommandOutput:
    """Tests for CommandOutput helpers."""

    def test_is_empty_ignores_whitespace(self):
        assert CommandOutput(" \n", "", 1).is_empty
        assert not CommandOutput("", "boom", 1).is_empty


class TestMergedEnv:
    """Tests for merged_env."""

    def test_none_without_overrides(self):
        assert merged_env(None) is None
        assert merged_env({}) is None

    def test_overrides_win(self):
        with patch.dict(os.environ, {"KEEP": "1", "MAGICK_HOME": "old"}):
            env = merged_env({"MAGICK_HOME": "/opt/im"})

        assert env["KEEP"] == "1"
        assert env["MAGICK_HOME"] == "/opt/im"
