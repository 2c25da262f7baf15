"""Base model configuration for catalog and config data."""

from pydantic import BaseModel, ConfigDict


class Model(BaseModel):
    """Immutable model that rejects unknown fields.

    Catalog files are hand-written, so a typo in a key should fail loudly
    instead of silently falling back to a default.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")
