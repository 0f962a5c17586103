from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class EntityKind(str, Enum):
    ARTWORK = "artwork"
    ARTIST = "artist"


class Coordinates(BaseModel):
    model_config = ConfigDict(frozen=True)

    lat: float
    lon: float


def _coerce_coordinates(value: Any) -> Any:
    # (lat, lon) tuples and lists are accepted alongside {"lat": .., "lon": ..}
    if isinstance(value, (tuple, list)):
        if len(value) != 2:
            raise ValueError("coordinates must be a (lat, lon) pair")
        return {"lat": value[0], "lon": value[1]}
    return value


class IncomingRecord(BaseModel):
    """The prospective entry being checked. Never persisted by the engine."""

    model_config = ConfigDict(frozen=True)

    title_or_name: str = ""
    entity_kind: EntityKind = EntityKind.ARTWORK
    coordinates: Optional[Coordinates] = None  # artworks only
    tags: Dict[str, Any] = Field(default_factory=dict)
    external_id: Optional[str] = None

    secondary_name: Optional[str] = None  # artist credit line of an artwork
    bio: Optional[str] = None             # artist biography

    @field_validator("coordinates", mode="before")
    @classmethod
    def _coordinates_pair(cls, value: Any) -> Any:
        return _coerce_coordinates(value)

    @field_validator("title_or_name", mode="before")
    @classmethod
    def _none_title(cls, value: Any) -> Any:
        return "" if value is None else value


class CandidateRecord(BaseModel):
    """
    An existing catalog entry handed over by the candidate retriever.

    tags_raw is the serialized tag payload as stored; it may be malformed.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    title_or_name: str = ""
    entity_kind: EntityKind = EntityKind.ARTWORK
    coordinates: Optional[Coordinates] = None
    tags: Dict[str, Any] = Field(default_factory=dict)
    tags_raw: Optional[str] = None
    external_id: Optional[str] = None
    source_id: Optional[str] = None

    secondary_name: Optional[str] = None
    bio: Optional[str] = None

    @field_validator("coordinates", mode="before")
    @classmethod
    def _coordinates_pair(cls, value: Any) -> Any:
        return _coerce_coordinates(value)

    @field_validator("title_or_name", mode="before")
    @classmethod
    def _none_title(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("id", mode="before")
    @classmethod
    def _id_as_str(cls, value: Any) -> Any:
        return str(value) if value is not None else value

    def tag_payload(self) -> Any:
        """Raw payload when the retriever supplied one, else the parsed map."""
        if self.tags_raw is not None:
            return self.tags_raw
        return self.tags

    def reference_ids(self) -> list[Optional[str]]:
        return [self.id, self.source_id, self.external_id]
