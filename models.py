from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """
    Base for every wire type. Fields are snake_case in Python and camelCase in JSON
    (e.g. time_limit_minutes <-> timeLimitMinutes); both spellings are accepted on input.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# --- Challenge Catalog Schemas ---

class ChallengeType(str, Enum):
    FORMAT = "format"
    DEBUG = "debug"
    GENERATE = "generate"
    TRANSFORM = "transform"
    LOGIC = "logic"
    API = "api"


class ChallengeTemplate(CamelModel):
    """One fixed catalog entry. Defined at import time and never mutated."""
    model_config = ConfigDict(frozen=True)

    type_id: ChallengeType
    title: str
    description: str
    starter_text: str = ""
    canonical_solution: str = ""
    icon: str = ""


class ChallengeInstance(CamelModel):
    """A template copy placed at a position in the stage sequence."""
    model_config = ConfigDict(frozen=True)

    instance_id: str
    type_id: ChallengeType
    title: str
    description: str
    starter_text: str = ""
    canonical_solution: str = ""
    icon: str = ""


class SessionConfig(CamelModel):
    room_name: str = Field(min_length=1)
    time_limit_minutes: int = Field(ge=1, le=60)
    selected_type_ids: List[ChallengeType] = Field(min_length=1)

    @field_validator("room_name")
    @classmethod
    def room_name_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("room name must not be blank")
        return value

    @field_validator("selected_type_ids")
    @classmethod
    def selection_is_a_set(cls, value: List[ChallengeType]) -> List[ChallengeType]:
        if len(set(value)) != len(value):
            raise ValueError("each challenge type can be selected only once")
        return value

    @property
    def time_limit_ms(self) -> int:
        return self.time_limit_minutes * 60_000


class GeneratedDocument(CamelModel):
    model_config = ConfigDict(frozen=True)

    html_text: str


# --- Tab Builder Schemas ---

class TabPanel(CamelModel):
    id: int = Field(ge=1)
    label: str
    content: str = ""


class TabsDocumentRequest(CamelModel):
    tabs: List[TabPanel] = Field(min_length=1, max_length=15)


# --- Persistence API Schemas ---

class EscapeRoomCreate(CamelModel):
    """
    Payload for creating (or dry-run validating) a stored escape room.
    Every field is required and must be non-empty.
    """
    name: str = Field(min_length=1)
    time_limit_minutes: int = Field(ge=1)
    challenge_type_ids: List[str] = Field(min_length=1)
    html_output: str = Field(min_length=1)


class EscapeRoomUpdate(CamelModel):
    # Only non-empty fields are applied
    name: Optional[str] = None
    time_limit_minutes: Optional[int] = Field(None, ge=1)
    challenge_type_ids: Optional[List[str]] = None
    html_output: Optional[str] = None


class EscapeRoomRecord(CamelModel):
    id: str
    name: str
    time_limit_minutes: int
    challenge_type_ids: List[str]
    html_output: str
    created_at: datetime
    updated_at: datetime


class DryRunResult(CamelModel):
    success: bool
    message: str
    id: str
