from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class NamedRef(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str = ""


class MediaItem(BaseModel):
    """Film record as stored in the media_items namespace."""

    model_config = ConfigDict(extra="ignore")

    id: int
    name: str
    short_description: str = ""
    year: Optional[int] = None
    logo: str = ""
    genres: List[NamedRef] = Field(default_factory=list)
    countries: List[str] = Field(default_factory=list)
    persons: List[NamedRef] = Field(default_factory=list)
    imdb: Optional[float] = None

    @field_validator("year", mode="before")
    @classmethod
    def _blank_year(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @property
    def lead_person(self) -> Optional[str]:
        for person in self.persons:
            if person.name:
                return person.name
        return None


class EPGItem(BaseModel):
    """Program guide entry from the epg namespace."""

    model_config = ConfigDict(extra="ignore")

    name: str
    description: str = ""
    channel_id: int
    start_time: int
    end_time: int
