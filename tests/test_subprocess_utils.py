from __future__ import annotations

import asyncio
import sys

import pytest

from dgraph_deploy.subprocess_utils import run_command


def test_run_command_keeps_stdout_bytes_exact() -> None:
    cmd = [
        sys.executable,
        "-c",
        "import sys; sys.stdout.buffer.write(bytes(range(256)))",
    ]

    result = asyncio.run(run_command(cmd, timeout=10))

    assert result.returncode == 0
    assert result.stdout == bytes(range(256))


def test_run_command_returns_failure_instead_of_raising() -> None:
    cmd = [
        sys.executable,
        "-c",
        "import sys; sys.stderr.write('bad input'); sys.exit(3)",
    ]

    result = asyncio.run(run_command(cmd, timeout=10))

    assert result.returncode == 3
    assert result.stderr == "bad input"


def test_run_command_timeout_raises_runtime_error() -> None:
    cmd = [
        sys.executable,
        "-c",
        "import time; time.sleep(5)",
    ]

    with pytest.raises(RuntimeError) as excinfo:
        asyncio.run(run_command(cmd, timeout=0.2))

    assert "0.2" in str(excinfo.value)


def test_run_command_missing_executable_raises_runtime_error() -> None:
    with pytest.raises(RuntimeError) as excinfo:
        asyncio.run(run_command(["definitely-not-a-command-xyz"]))

    assert "definitely-not-a-command-xyz" in str(excinfo.value)
