"""
Gateway Flow - Pydantic Models

LogEvent      - one observed protocol message, as delivered by the gateway
TimelineEntry - one renderable row: a protocol message or a session marker

Snapshots are replaced wholesale on every poll. Nothing here is persisted.
"""
import math
from datetime import datetime
from enum import Enum
from typing import Any, Optional, Union
from pydantic import BaseModel, Field, field_validator


# ═══════════════════════════════════════════════════════════
# ENUMS
# ═══════════════════════════════════════════════════════════

class Phase(str, Enum):
    """Protocol step of a message. Declaration order is the sort order."""
    M1 = "M1"
    M2 = "M2"
    M3 = "M3"
    M4 = "M4"
    UNCLASSIFIED = "UNCLASSIFIED"  # catch-all, always last

    @classmethod
    def from_tag(cls, tag: Optional[str]) -> "Phase":
        try:
            return cls(tag)
        except ValueError:
            return cls.UNCLASSIFIED

    @property
    def rank(self) -> int:
        return _PHASE_RANK[self]


_PHASE_RANK = {phase: i for i, phase in enumerate(Phase)}


class EntryKind(str, Enum):
    SESSION = "session"
    MESSAGE = "message"


# ═══════════════════════════════════════════════════════════
# LOG EVENTS (gateway input)
# ═══════════════════════════════════════════════════════════

class LogEvent(BaseModel):
    type: str = ""
    session_id: Optional[str] = Field(None, alias="sessionId")
    seq: Optional[int] = None
    ts: Optional[float] = Field(None, allow_inf_nan=False)
    src: str = ""
    dst: str = ""
    details: Optional[dict[str, Any]] = None

    # Filled by reconstruction.coerce_event, never read from the gateway
    issues: list[str] = Field(default_factory=list, exclude=True)

    class Config:
        populate_by_name = True

    @field_validator("session_id", mode="before")
    @classmethod
    def _numeric_session_id(cls, value: Any) -> Any:
        # Gateways may send numeric ids; 7 and 7.0 are both session "7"
        if isinstance(value, bool) or (isinstance(value, float) and not math.isfinite(value)):
            return value
        if isinstance(value, float) and value.is_integer():
            value = int(value)
        if isinstance(value, (int, float)):
            return str(value)
        return value

    @property
    def phase(self) -> Phase:
        return Phase.from_tag(self.type)


# ═══════════════════════════════════════════════════════════
# TIMELINE (renderer output)
# ═══════════════════════════════════════════════════════════

class TimelineEntry(BaseModel):
    id: Union[int, str]             # seq, pre-sort bucket index, or sess-<key>
    key: str                        # render key, unique across sessions
    kind: EntryKind
    type: str                       # phase tag as logged, or 'SESSION'
    phase: Optional[Phase] = None
    session_id: Optional[str] = None
    seq: Optional[int] = None
    src: str = ""
    dst: str = ""
    ts: Optional[float] = None
    label: Optional[str] = None     # session markers only
    details: Optional[dict[str, Any]] = None
    malformed: bool = False
    issues: list[str] = Field(default_factory=list)


class TimelineResponse(BaseModel):
    entries: list[TimelineEntry]
    total: int
    sessions: list[str] = Field(default_factory=list)
    generation: int = 0
    fetched_at: Optional[datetime] = None
    start_ts: Optional[float] = None
    end_ts: Optional[float] = None


# ═══════════════════════════════════════════════════════════
# GATEWAY ACTIONS
# ═══════════════════════════════════════════════════════════

class _TrimmedRequest(BaseModel):
    """Fields are trimmed and must not be blank."""

    @field_validator("*", mode="before")
    @classmethod
    def _strip(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = value.strip()
            if not value:
                raise ValueError("must not be blank")
        return value


class SensorRegisterRequest(_TrimmedRequest):
    sensor_id: str = Field(..., alias="sensorId")

    class Config:
        populate_by_name = True


class UserRegisterRequest(_TrimmedRequest):
    username: str
    password: str


class BindRequest(_TrimmedRequest):
    username: str
    sensor_id: str = Field(..., alias="sensorId")

    class Config:
        populate_by_name = True


class AuthenticateRequest(_TrimmedRequest):
    username: str
    password: str
    sensor_id: str = Field(..., alias="sensorId")

    class Config:
        populate_by_name = True
