from enum import Enum
from typing import Any, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class ShotStatus(str, Enum):
    NOT_GENERATED = "prompt not yet generated"
    GENERATED = "prompt generated"
    SELECTED = "shot selected"
    # written by the revision workflow only
    UPDATED = "prompt updated"


def coerce_status(value: Any) -> ShotStatus:
    """Unknown or missing values fall back to NOT_GENERATED."""
    if isinstance(value, ShotStatus):
        return value
    try:
        return ShotStatus(str(value).strip())
    except ValueError:
        return ShotStatus.NOT_GENERATED


# the vocabulary used for filters and progress counts
PROGRESS_STATUSES = (ShotStatus.NOT_GENERATED, ShotStatus.GENERATED, ShotStatus.SELECTED)


class ShotRecord(BaseModel):
    model_config = ConfigDict(populate_by_name=True, use_enum_values=False, coerce_numbers_to_str=True)

    id: str
    title: str = ""
    character: str = ""
    description: str = ""
    prompt: str = ""
    caption: str = ""
    video_url: str = Field(default="", alias="videoUrl")
    status: ShotStatus = ShotStatus.NOT_GENERATED

    @field_validator("status", mode="before")
    @classmethod
    def _normalize_status(cls, v: Any) -> ShotStatus:
        return coerce_status(v)

    @field_validator("title", "character", "description", "prompt", "caption", "video_url", mode="before")
    @classmethod
    def _none_to_empty(cls, v: Any) -> Any:
        return "" if v is None else v

    def to_json(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")


class ShotPatch(BaseModel):
    """Shallow patch: only the fields actually sent are merged."""
    model_config = ConfigDict(populate_by_name=True)

    title: Optional[str] = None
    character: Optional[str] = None
    description: Optional[str] = None
    prompt: Optional[str] = None
    caption: Optional[str] = None
    video_url: Optional[str] = Field(default=None, alias="videoUrl")
    status: Optional[ShotStatus] = None

    @field_validator("status", mode="before")
    @classmethod
    def _normalize_status(cls, v: Any) -> Optional[ShotStatus]:
        return None if v is None else coerce_status(v)

    def changes(self) -> dict:
        return self.model_dump(exclude_unset=True)


# ---------- 请求模型 ----------
class ShotCreateReq(BaseModel):
    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True)

    id: Optional[str] = None
    title: Optional[str] = None
    character: str = ""
    description: str = ""
    prompt: str = ""
    caption: str = ""
    video_url: str = Field(default="", alias="videoUrl")
    status: Optional[str] = None


class ShotUpdateReq(BaseModel):
    model_config = ConfigDict(coerce_numbers_to_str=True)

    id: Optional[str] = Field(default=None, validation_alias=AliasChoices("id", "shotId"))
    patch: Optional[ShotPatch] = Field(default=None, validation_alias=AliasChoices("patch", "updates"))


class ShotDeleteReq(BaseModel):
    model_config = ConfigDict(coerce_numbers_to_str=True)

    id: Optional[str] = Field(default=None, validation_alias=AliasChoices("id", "shotId"))


class CsvImportReq(BaseModel):
    csvData: Optional[str] = None


# built-in sample shots used to seed an empty collection
SAMPLE_SHOTS: List[ShotRecord] = [
    ShotRecord(
        id="shot_1",
        title="Opening Scene: Dance Studio Setup",
        character="Main Character",
        description="Wide establishing shot of the dance studio with mirrors and barres",
    ),
    ShotRecord(
        id="shot_2",
        title="Interview: Pre-Competition Nerves",
        character="Brunette Girl",
        description="Close-up talking head shot expressing nervousness about upcoming performance",
    ),
]
