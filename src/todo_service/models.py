from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional, TypedDict


class TodoStatus(str, Enum):
    """Lifecycle status of a todo item."""

    NOT_DONE = "NOT_DONE"
    DONE = "DONE"
    PAST_DUE = "PAST_DUE"


# PUBLIC_INTERFACE
class TodoEntity(TypedDict):
    """
    A lightweight domain model representing a Todo item for non-ORM storage
    backends.

    Fields:
    - id: Opaque unique identifier (UUID string)
    - description: Non-empty text (trimmed on input via schemas)
    - status: NOT_DONE, DONE or PAST_DUE
    - creation_datetime: UTC creation timestamp, never changes
    - due_datetime: UTC due timestamp, never changes after creation
    - done_datetime: UTC completion timestamp; set only while status is DONE
    """

    id: str
    description: str
    status: TodoStatus
    creation_datetime: datetime
    due_datetime: datetime
    done_datetime: Optional[datetime]
