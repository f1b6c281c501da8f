"""
Wire envelope and filter configuration.

    {"i": "<id>", "t": "<type>", "c": "<channel>", "p": <payload>}
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Envelope(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(default="", alias="i")
    type: str = Field(default="", alias="t")
    channel: Optional[str] = Field(default=None, alias="c")
    payload: Optional[Any] = Field(default=None, alias="p")

    @field_validator("id", "type", mode="before")
    @classmethod
    def _null_as_empty(cls, value: Any) -> Any:
        return "" if value is None else value


class FilterTags(BaseModel):
    whitelist: Optional[list[str]] = None
    blacklist: Optional[list[str]] = None


class FilterTypes(BaseModel):
    whitelist: Optional[list[str]] = None
    blacklist: Optional[list[str]] = None


class ActivityFilter(BaseModel):
    """Opaque to the client. Overlapping white/black lists are the server's problem."""

    model_config = ConfigDict(populate_by_name=True)

    tag_type_mode: Optional[str] = Field(default=None, alias="tagTypeMode")  # "and" | "or"
    tags: FilterTags = Field(default_factory=FilterTags)
    types: FilterTypes = Field(default_factory=FilterTypes)
