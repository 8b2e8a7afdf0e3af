"""Shared fixtures."""

import asyncio
import json
import stat
import sys
from collections.abc import Awaitable, Callable, Sequence
from pathlib import Path
from typing import Any, Protocol

import pytest

from stress_test_runner.models.config import Page, RewriteMode, RunConfiguration

FAKE_STRESS_TESTER = """\
import json
import os
import signal
import sys
import time

args = sys.argv[1:]
target = args[args.index("swiftc") - 1]
with open(target) as f:
    behavior = json.load(f)

if behavior.get("args_file"):
    with open(behavior["args_file"], "w") as f:
        json.dump(args, f)

if behavior.get("ignore_sigterm"):
    signal.signal(signal.SIGTERM, signal.SIG_IGN)

for line in behavior.get("lines", []):
    sys.stdout.write(line + "\\n")
    sys.stdout.flush()

if behavior.get("pid_file"):
    tmp = behavior["pid_file"] + ".tmp"
    with open(tmp, "w") as f:
        f.write(str(os.getpid()))
    os.replace(tmp, behavior["pid_file"])

time.sleep(behavior.get("sleep", 0))
sys.exit(behavior.get("status", 0))
"""


class MakeConfigFn(Protocol):
    """Protocol for the run configuration builder."""

    def __call__(
        self,
        *,
        lines: Sequence[str] = (),
        status: int = 0,
        **behavior: Any,
    ) -> RunConfiguration:
        """Write a behavior file for the fake stress tester and configure a run."""


@pytest.fixture
def fake_stress_tester(tmp_path: Path) -> Path:
    """Create an executable that behaves according to its target file."""
    script = tmp_path / "fake-stress-tester"
    script.write_text(f"#!{sys.executable}\n{FAKE_STRESS_TESTER}")
    script.chmod(script.stat().st_mode | stat.S_IXUSR)
    return script


@pytest.fixture
def make_config(tmp_path: Path, fake_stress_tester: Path) -> MakeConfigFn:
    """Return a function building configurations for the fake stress tester."""
    counter = [0]

    def _make(
        *,
        lines: Sequence[str] = (),
        status: int = 0,
        **behavior: Any,
    ) -> RunConfiguration:
        counter[0] += 1
        target = tmp_path / f"target-{counter[0]}.swift"
        target.write_text(
            json.dumps({"lines": list(lines), "status": status, **behavior})
        )
        return RunConfiguration(
            file=str(target),
            rewrite_mode=RewriteMode.BASIC,
            page=Page(index=1, total=1),
            compiler_args=["-sdk", "/sdk"],
            executable=str(fake_stress_tester),
            terminate_timeout=1.0,
        )

    return _make


@pytest.fixture
def wait_for_file() -> Callable[[Path], Awaitable[str]]:
    """Return a function waiting for a file to appear and reading it."""

    async def _wait(path: Path, timeout: float = 10.0) -> str:
        async with asyncio.timeout(timeout):
            while not path.exists():
                await asyncio.sleep(0.01)
        return path.read_text()

    return _wait
