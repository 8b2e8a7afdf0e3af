"""Base model configuration for all data structures."""

from pydantic import BaseModel, ConfigDict


class Model(BaseModel):
    """Base model with standard configuration."""

    model_config = ConfigDict(frozen=True)


class OpaqueModel(Model):
    """Frozen model that keeps keys it does not declare.

    Used for payloads produced by the stress tester that are carried
    through without interpretation.
    """

    model_config = ConfigDict(frozen=True, extra="allow")
