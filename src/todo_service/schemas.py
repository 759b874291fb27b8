from __future__ import annotations

from datetime import date, datetime
from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from .models import TodoStatus
from .utils import as_utc

# Shared type for incoming dueDatetime which can be a date, datetime, or ISO8601 string
DueDateInput = Union[date, datetime, str]


def _to_utc(value: datetime) -> datetime:
    try:
        return as_utc(value)
    except OverflowError as e:
        # Offsets near datetime.min/max cannot be shifted to UTC
        raise ValueError("dueDatetime is out of the supported range") from e


def _parse_due_datetime(value: Optional[DueDateInput]) -> datetime:
    """
    Internal helper to normalize dueDatetime input into an aware UTC datetime.
    - If value is a string, attempt to parse via datetime.fromisoformat; if time is missing, set to 00:00.
    - If value is a date (not datetime), convert to datetime at 00:00.
    - Naive datetimes are read as UTC; aware ones are converted to UTC.
    """
    if value is None:
        raise ValueError("dueDatetime is required")

    if isinstance(value, datetime):
        return _to_utc(value)

    if isinstance(value, date):
        # Promote a date to a datetime at midnight
        return _to_utc(datetime(value.year, value.month, value.day))

    if isinstance(value, str):
        s = value.strip()
        # fromisoformat before 3.11 rejects a trailing 'Z'
        if s.endswith(("Z", "z")):
            s = s[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(s)
        except ValueError:
            try:
                d = date.fromisoformat(s)
            except ValueError as e:
                raise ValueError(
                    "Invalid dueDatetime format. Use an ISO8601 date or datetime string "
                    "(e.g., '2025-01-31' or '2025-01-31T13:45:00Z')."
                ) from e
            parsed = datetime(d.year, d.month, d.day)
        return _to_utc(parsed)

    raise ValueError("Invalid type for dueDatetime; expected an ISO8601 string.")


def _clean_description(v: Any) -> str:
    if not isinstance(v, str):
        raise ValueError("description must be a string")
    s = v.strip()
    if not s:
        raise ValueError("description should not be empty")
    return s


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# PUBLIC_INTERFACE
class TodoCreate(_CamelModel):
    """
    Schema for creating a new Todo item.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "description": "Buy groceries",
                "dueDatetime": "2025-02-01T18:00:00Z",
            }
        },
    )

    description: str = Field(..., description="What needs to be done", min_length=1)
    due_datetime: datetime = Field(
        ...,
        description="ISO8601 timestamp for when the todo is due. Dates without a time are set to 00:00 UTC",
    )

    @field_validator("description", mode="before")
    @classmethod
    def validate_description(cls, v: Any) -> str:
        """Strip whitespace and reject empty text."""
        return _clean_description(v)

    @field_validator("due_datetime", mode="before")
    @classmethod
    def parse_due_datetime(cls, v: Optional[DueDateInput]) -> datetime:
        """Normalize dueDatetime from str/date/datetime to an aware UTC datetime."""
        return _parse_due_datetime(v)


# PUBLIC_INTERFACE
class DescriptionUpdate(_CamelModel):
    """
    Schema for replacing the description of an existing Todo item.
    """

    model_config = ConfigDict(
        json_schema_extra={"example": {"description": "Buy groceries and fruit"}},
    )

    description: str = Field(..., description="New description", min_length=1)

    @field_validator("description", mode="before")
    @classmethod
    def validate_description(cls, v: Any) -> str:
        return _clean_description(v)


# PUBLIC_INTERFACE
class TodoOut(_CamelModel):
    """
    Schema returned by the API for a Todo item.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": "3f0c8a52-6f1e-4a8e-9a55-0b1f6c6a9d21",
                "description": "Buy groceries",
                "status": "NOT_DONE",
                "creationDatetime": "2025-01-25T10:15:30.123456Z",
                "dueDatetime": "2025-02-01T18:00:00Z",
                "doneDatetime": None,
            }
        },
    )

    id: str = Field(..., description="Unique identifier of the todo item")
    description: str = Field(..., description="What needs to be done")
    status: TodoStatus = Field(..., description="NOT_DONE, DONE or PAST_DUE")
    creation_datetime: datetime = Field(..., description="Creation timestamp")
    due_datetime: datetime = Field(..., description="Due timestamp")
    done_datetime: Optional[datetime] = Field(
        default=None, description="Completion timestamp; null unless status is DONE"
    )


# PUBLIC_INTERFACE
class HealthOut(BaseModel):
    """Service health with the storage backend reachability."""

    model_config = ConfigDict(json_schema_extra={"example": {"status": "ok", "db": "up"}})

    status: Literal["ok"] = "ok"
    db: Literal["up", "down"]


# PUBLIC_INTERFACE
class ErrorOut(BaseModel):
    """Uniform error envelope (documentation only; built in errors.error_response)."""

    statusCode: int
    error: str
    message: Any
    detail: Optional[Any] = None
    path: str
    method: str
    requestId: str
    timestamp: datetime
