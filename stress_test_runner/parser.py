"""Parse the stress tester's newline-delimited JSON output."""

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from pydantic import ValidationError

from stress_test_runner.models.message import (
    DetectedMessage,
    ProducedMessage,
    SourceKitError,
    SourceKitResponse,
    message_adapter,
)

log = logging.getLogger(__name__)


@dataclass(frozen=True, kw_only=True)
class ParsedMessages:
    """Folded content of a well-formed output stream."""

    error: SourceKitError | None
    responses: Sequence[SourceKitResponse]


def parse_message(line: bytes) -> DetectedMessage | ProducedMessage | None:
    """Decode a single output line, returning None if it is malformed."""
    try:
        return message_adapter.validate_json(line)
    except ValidationError as e:
        log.debug("Malformed stress tester message %r: %s", line[:200], e)
        return None


def parse_messages(data: bytes) -> ParsedMessages | None:
    """Parse captured stdout into an optional error and ordered responses.

    Returns None when any line is malformed or when more than one error
    was detected, since neither can be classified reliably.
    """
    error: SourceKitError | None = None
    responses: list[SourceKitResponse] = []

    for line in data.split(b"\n"):
        if not line:
            continue
        match parse_message(line):
            case None:
                return None
            case DetectedMessage(error=detected):
                if error is not None:
                    log.debug("Second detected error in stream: %s", detected.kind)
                    return None
                error = detected
            case ProducedMessage(response=response):
                responses.append(response)

    return ParsedMessages(error=error, responses=responses)
