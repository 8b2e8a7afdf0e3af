"""Outcome of a stress test operation.

Exactly one variant holds once an operation completes. Consumers are
expected to ``match`` on the variant classes.
"""

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import ClassVar, Literal

from stress_test_runner.models.message import SourceKitError, SourceKitResponse

type OutcomeName = Literal["unexecuted", "cancelled", "passed", "failed", "errored"]


@dataclass(frozen=True, kw_only=True)
class Unexecuted:
    """The operation is still pending."""

    name: ClassVar[OutcomeName] = "unexecuted"
    is_passed: ClassVar[bool] = False


@dataclass(frozen=True, kw_only=True)
class Cancelled:
    """The operation was cancelled before or while running."""

    name: ClassVar[OutcomeName] = "cancelled"
    is_passed: ClassVar[bool] = False


@dataclass(frozen=True, kw_only=True)
class Passed:
    """The stress tester ran and found no issues."""

    name: ClassVar[OutcomeName] = "passed"
    is_passed: ClassVar[bool] = True

    responses: Sequence[SourceKitResponse] = field(default_factory=tuple)


@dataclass(frozen=True, kw_only=True)
class Failed:
    """The stress tester ran and diagnosed an issue."""

    name: ClassVar[OutcomeName] = "failed"
    is_passed: ClassVar[bool] = False

    error: SourceKitError
    responses: Sequence[SourceKitResponse] = field(default_factory=tuple)


@dataclass(frozen=True, kw_only=True)
class Errored:
    """The stress tester itself failed; status and arguments allow reproduction."""

    name: ClassVar[OutcomeName] = "errored"
    is_passed: ClassVar[bool] = False

    status: int
    arguments: Sequence[str]


type Outcome = Unexecuted | Cancelled | Passed | Failed | Errored
