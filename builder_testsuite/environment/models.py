"""Pydantic models for docker CLI JSON output."""

from collections.abc import Mapping

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ContainerSummary(BaseModel):
    """One line of ``docker ps --format json``."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(alias="ID")
    names: str = Field(default="", alias="Names")
    state: str = Field(default="", alias="State")
    labels: Mapping[str, str] = Field(default_factory=dict, alias="Labels")

    @field_validator("labels", mode="before")
    @classmethod
    def _parse_labels(cls, value: object) -> object:
        # docker renders labels as "key=value,key=value"
        if not isinstance(value, str):
            return value
        labels: dict[str, str] = {}
        for item in value.split(","):
            if not item:
                continue
            key, _, val = item.partition("=")
            labels[key] = val
        return labels
