"""Reusable, strict base models for the gateway."""

from pydantic import BaseModel, ConfigDict


class StrictBaseModel(BaseModel):
    """
    A strict, immutable pydantic base model.

    Unknown fields are ignored rather than rejected: configuration files are
    shared with the network backend, which reads its own keys from them.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        validate_default=True,
        extra="ignore",
        frozen=True,
        strict=True,
    )
