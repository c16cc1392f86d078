from __future__ import annotations

from datetime import date, datetime
from typing import List, Optional, Union
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from . import day_keys
from .models import Category

# Shared type for incoming due_date which can be a date, datetime, or ISO8601 string
DueDateInput = Union[date, datetime, str]


def _parse_due_date(value: Optional[DueDateInput]) -> Optional[datetime]:
    """
    Internal helper to normalize due_date input into a datetime.
    - If value is a string, attempt to parse via datetime.fromisoformat; if time is missing, set to 00:00.
    - If value is a date (not datetime), convert to datetime at 00:00.
    - If value is a datetime, return as-is.
    """
    if value is None:
        return None

    if isinstance(value, datetime):
        return value

    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, 0, 0, 0)

    if isinstance(value, str):
        s = value.strip()
        try:
            return datetime.fromisoformat(s)
        except ValueError:
            try:
                d = date.fromisoformat(s)
                return datetime(d.year, d.month, d.day, 0, 0, 0)
            except ValueError as e:
                raise ValueError(
                    "Invalid due_date format. Use ISO8601 date or datetime string (e.g., '2025-01-31' or '2025-01-31T13:45:00')."
                ) from e

    raise ValueError("Invalid type for due_date; expected date, datetime, or ISO8601 string.")


# PUBLIC_INTERFACE
class TodoIn(BaseModel):
    """
    Schema for creating a todo on the selected day, or replacing the editable
    fields of an existing one.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "title": "Read chapter 3",
                "category": "study",
                "due_date": "2025-02-01",
            }
        }
    )

    title: str = Field(..., description="Short title for the todo item", min_length=1, max_length=200)
    category: Category = Field(default=Category.OTHER, description="One of study, personal, assignment, other")
    due_date: Optional[datetime] = Field(
        default=None,
        description="Optional deadline. Accepts ISO8601 date or datetime; dates are set to 00:00",
    )

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        """
        Strip whitespace and enforce 1..200 length.
        """
        s = v.strip()
        if not (1 <= len(s) <= 200):
            raise ValueError("title length must be between 1 and 200 characters")
        return s

    @field_validator("due_date", mode="before")
    @classmethod
    def parse_due_date(cls, v: Optional[DueDateInput]) -> Optional[datetime]:
        return _parse_due_date(v)


# PUBLIC_INTERFACE
class TodoOut(BaseModel):
    """
    Schema returned by the API for a todo item.
    """

    id: UUID = Field(..., description="Unique identifier of the todo item")
    day_key: str = Field(..., description="Day the todo belongs to (YYYY-MM-DD)")
    title: str
    category: Category
    is_completed: bool
    due_date: Optional[datetime] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class TodoListOut(BaseModel):
    """Cached todo list of the selected day plus its derived counts."""

    day_key: str
    items: List[TodoOut]
    completed_count: int
    total_count: int
    error: Optional[str] = Field(default=None, description="Last user-visible error, if any")


class DeletePositions(BaseModel):
    positions: List[int] = Field(..., description="Positions in the current ordered list")


# PUBLIC_INTERFACE
class DiaryIn(BaseModel):
    content: str = Field(..., description="Full editor text; blank text removes the day's entry")


class DiaryOut(BaseModel):
    day_key: str
    content: str
    last_saved_time: Optional[datetime] = None
    save_pending: bool = False
    error: Optional[str] = None


# PUBLIC_INTERFACE
class DaySelect(BaseModel):
    """Select a day by its YYYY-MM-DD key."""

    model_config = ConfigDict(json_schema_extra={"example": {"day": "2025-01-01"}})

    day: date

    @field_validator("day", mode="before")
    @classmethod
    def parse_key(cls, v):
        if isinstance(v, str):
            return day_keys.parse_day_key(v.strip())
        return v


class DayShift(BaseModel):
    days: int = Field(..., description="Number of days to move; negative moves back")


class DayOut(BaseModel):
    day: date
    day_key: str
    display: str
    is_today: bool


class CategoryOut(BaseModel):
    value: Category
    label: str
    icon: str
    light_color: str
    dark_color: str
