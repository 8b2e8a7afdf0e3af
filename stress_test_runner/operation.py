"""A single stress tester run against one file."""

import asyncio
import logging
import threading
from collections.abc import Sequence

from stress_test_runner.models.config import RunConfiguration
from stress_test_runner.models.outcome import (
    Cancelled,
    Errored,
    Failed,
    Outcome,
    Passed,
    Unexecuted,
)
from stress_test_runner.parser import parse_messages
from stress_test_runner.process_runner import ProcessResult, ProcessRunner

log = logging.getLogger(__name__)


class StressTestOperation:
    """Runs the stress tester once and classifies the result.

    ``execute()`` is awaited by the scheduler's worker task. ``cancel()``
    may be called from any other task or thread at any point; it also
    terminates a running stress tester process.
    """

    def __init__(
        self,
        config: RunConfiguration,
        process: ProcessRunner | None = None,
    ) -> None:
        """Initialize the operation.

        Args:
            config: Configuration of the run
            process: Process runner to use (default: one built from config)

        """
        self.config = config
        self.arguments: Sequence[str] = config.stress_tester_arguments()
        self._process = process or ProcessRunner(
            config.executable,
            self.arguments,
            terminate_timeout=config.terminate_timeout,
        )

        self._lock = threading.Lock()
        self._cancelled = False
        self._started = False
        self._outcome: Outcome = Unexecuted()

    @property
    def summary(self) -> str:
        """Progress description, e.g. ``rewrite basic 1/4``."""
        return self.config.summary

    @property
    def outcome(self) -> Outcome:
        """Current outcome; only final once ``execute()`` has returned."""
        with self._lock:
            return self._outcome

    @property
    def is_cancelled(self) -> bool:
        """Whether ``cancel()`` has been called."""
        with self._lock:
            return self._cancelled

    def cancel(self) -> None:
        """Cancel the operation and terminate the stress tester if running."""
        with self._lock:
            if self._cancelled:
                return
            self._cancelled = True
        log.info("Cancelling %s of %s", self.summary, self.config.file)
        self._process.terminate()

    async def execute(self) -> Outcome:
        """Run the stress tester and record the outcome.

        Returns:
            The terminal outcome of the run

        Raises:
            RuntimeError: If the operation was already executed

        """
        with self._lock:
            if self._started:
                raise RuntimeError(f"Operation '{self.summary}' was already executed")
            self._started = True

        if self.is_cancelled:
            log.info("Skipping %s of %s: cancelled", self.summary, self.config.file)
            return self._finish(Cancelled())

        try:
            result = await self._process.run()
        except asyncio.CancelledError:
            self.cancel()
            self._finish(Cancelled())
            raise

        return self._finish(self._classify(result))

    def _classify(self, result: ProcessResult) -> Outcome:
        if self.is_cancelled:
            log.info(
                "Discarding %d byte(s) of output from cancelled run %s",
                len(result.stdout),
                self.summary,
            )
            return Cancelled()

        if (parsed := parse_messages(result.stdout)) is None:
            log.warning(
                "Malformed stress tester output for %s (status=%d)",
                self.config.file,
                result.status,
            )
            return Errored(status=result.status, arguments=self.arguments)

        if result.status == 0:
            return Passed(responses=parsed.responses)

        if parsed.error is not None:
            return Failed(error=parsed.error, responses=parsed.responses)

        log.warning(
            "Stress tester exited with status=%d without reporting an error: %s",
            result.status,
            result.stderr.decode(errors="replace").strip()[-500:],
        )
        return Errored(status=result.status, arguments=self.arguments)

    def _finish(self, outcome: Outcome) -> Outcome:
        with self._lock:
            if not isinstance(self._outcome, Unexecuted):
                raise RuntimeError(f"Outcome of '{self.summary}' is already set")
            self._outcome = outcome
        log.info(
            "Finished %s of %s: %s", self.summary, self.config.file, outcome.name
        )
        return outcome
