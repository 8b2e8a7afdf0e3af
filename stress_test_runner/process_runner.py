"""Run a single child process and capture its output."""

import asyncio
import contextlib
import logging
import os
import signal
import threading
from collections.abc import Sequence
from dataclasses import dataclass

log = logging.getLogger(__name__)

# Reported when the executable could not be started. Outside both the
# 0..255 exit code range and the negative range used for signals.
SPAWN_FAILURE_STATUS = -256


@dataclass(frozen=True, kw_only=True)
class ProcessResult:
    """Exit status and captured output of a finished process."""

    status: int
    stdout: bytes
    stderr: bytes = b""


class ProcessRunner:
    """Owns one child process for the duration of a ``run()`` call.

    ``terminate()`` may be called from any thread or task, before, during
    or after ``run()``.
    """

    def __init__(
        self,
        launch_path: str,
        arguments: Sequence[str],
        terminate_timeout: float = 5.0,
    ) -> None:
        self.launch_path = launch_path
        self.arguments = list(arguments)
        self.terminate_timeout = terminate_timeout

        self._lock = threading.Lock()
        self._terminate_requested = False
        self._loop: asyncio.AbstractEventLoop | None = None
        self._wakeup: asyncio.Event | None = None

    @property
    def terminate_requested(self) -> bool:
        """Whether ``terminate()`` has been called."""
        with self._lock:
            return self._terminate_requested

    def terminate(self) -> None:
        """Request termination of the child process, if one is running."""
        # run() clears the loop under the same lock before returning, so the
        # loop cannot be closed while it is held.
        with self._lock:
            self._terminate_requested = True
            if self._loop is not None and self._wakeup is not None:
                self._loop.call_soon_threadsafe(self._wakeup.set)

    async def run(self) -> ProcessResult:
        """Start the process and wait for it to exit or be terminated."""
        wakeup = asyncio.Event()
        with self._lock:
            if self._terminate_requested:
                log.info("Termination requested before start, not spawning")
                return ProcessResult(status=-signal.SIGTERM, stdout=b"")
            self._loop = asyncio.get_running_loop()
            self._wakeup = wakeup

        try:
            return await self._run(wakeup)
        finally:
            with self._lock:
                self._loop = None
                self._wakeup = None

    async def _run(self, wakeup: asyncio.Event) -> ProcessResult:
        log.debug("Spawning %s %s", self.launch_path, " ".join(self.arguments))
        try:
            process = await asyncio.create_subprocess_exec(
                self.launch_path,
                *self.arguments,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                start_new_session=True,
            )
        except OSError as e:
            log.error("Failed to spawn %s: %s", self.launch_path, e)
            return ProcessResult(
                status=SPAWN_FAILURE_STATUS, stdout=b"", stderr=str(e).encode()
            )

        communicate = asyncio.ensure_future(process.communicate())
        woken = asyncio.ensure_future(wakeup.wait())
        try:
            await asyncio.wait(
                {communicate, woken}, return_when=asyncio.FIRST_COMPLETED
            )
            if not communicate.done():
                await self._stop(process, communicate)
            stdout, stderr = await communicate
        finally:
            woken.cancel()
            if not communicate.done():
                log.warning("Killing process group %s left running", process.pid)
                _signal_group(process, signal.SIGKILL)
                communicate.cancel()
                await process.wait()

        status = await process.wait()
        log.debug("Process %s exited with status %d", process.pid, status)
        return ProcessResult(status=status, stdout=stdout, stderr=stderr)

    async def _stop(
        self,
        process: asyncio.subprocess.Process,
        communicate: "asyncio.Future[tuple[bytes, bytes]]",
    ) -> None:
        log.info("Terminating process group %s", process.pid)
        _signal_group(process, signal.SIGTERM)
        try:
            await asyncio.wait_for(asyncio.shield(communicate), self.terminate_timeout)
        except TimeoutError:
            log.warning(
                "Process %s still running %.1fs after SIGTERM, killing",
                process.pid,
                self.terminate_timeout,
            )
            _signal_group(process, signal.SIGKILL)


def _signal_group(process: asyncio.subprocess.Process, sig: signal.Signals) -> None:
    """Signal the process and everything it spawned.

    The child leads its own session, so helpers it started that still hold
    the output pipes are reached as well.
    """
    with contextlib.suppress(ProcessLookupError):
        os.killpg(process.pid, sig)
