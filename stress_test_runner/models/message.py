"""Models for messages emitted by the stress tester on stdout."""

from collections.abc import Mapping
from typing import Annotated, Any, Literal

from pydantic import Field, TypeAdapter

from stress_test_runner.models.base import Model, OpaqueModel


class SourceKitError(OpaqueModel):
    """Issue diagnosed by the stress tester (crash, timeout, failed request)."""

    kind: str = Field(..., description="Error kind, e.g. 'crashed' or 'timedOut'")
    message: str = Field(default="", description="Human-readable description")
    request: Mapping[str, Any] | None = Field(
        default=None, description="Request that triggered the error"
    )


class SourceKitResponse(OpaqueModel):
    """Response data reported by the stress tester for a single request."""

    request: Mapping[str, Any] = Field(
        default_factory=dict, description="Request the response belongs to"
    )
    response: str = Field(default="", description="Raw SourceKit response")


class DetectedMessage(Model):
    """The stress tester detected an error."""

    message: Literal["detected"]
    error: SourceKitError


class ProducedMessage(Model):
    """The stress tester produced a response."""

    message: Literal["produced"]
    response: SourceKitResponse


StressTesterMessage = Annotated[
    DetectedMessage | ProducedMessage, Field(discriminator="message")
]

message_adapter: TypeAdapter[DetectedMessage | ProducedMessage] = TypeAdapter(
    StressTesterMessage
)
