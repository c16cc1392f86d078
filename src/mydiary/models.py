from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Dict, Optional, Type, Union
from uuid import UUID, uuid4


# PUBLIC_INTERFACE
class Category(str, Enum):
    """Fixed set of todo categories."""

    STUDY = "study"
    PERSONAL = "personal"
    ASSIGNMENT = "assignment"
    OTHER = "other"

    @property
    def style(self) -> "CategoryStyle":
        return CATEGORY_STYLES[self]


@dataclass(frozen=True)
class CategoryStyle:
    """
    Presentation attributes of a category.

    Colours are ``#rrggbb`` strings; the dark variant is the deeper pastel used
    on dark backgrounds.
    """
    label: str
    icon: str
    light_color: str
    dark_color: str

    def color(self, dark: bool = False) -> str:
        return self.dark_color if dark else self.light_color


CATEGORY_STYLES: Dict[Category, CategoryStyle] = {
    Category.STUDY: CategoryStyle("공부", "book.fill", "#99ccff", "#6699e6"),
    Category.PERSONAL: CategoryStyle("개인", "person.fill", "#ffcce6", "#e680b3"),
    Category.ASSIGNMENT: CategoryStyle("과제", "doc.text.fill", "#ffe699", "#e6b34d"),
    Category.OTHER: CategoryStyle("기타", "star.fill", "#cce6cc", "#80b380"),
}


# PUBLIC_INTERFACE
@dataclass
class DiaryEntry:
    """
    One diary note for a calendar day.

    Fields:
    - id: Unique identifier
    - day_key: ``YYYY-MM-DD`` key; at most one entry exists per key
    - content: Note text; never blank for a stored entry
    - timestamp: Last time the entry was saved
    """

    day_key: str
    content: str
    timestamp: datetime
    id: UUID = field(default_factory=uuid4)

    def copy(self) -> "DiaryEntry":
        return replace(self)


# PUBLIC_INTERFACE
@dataclass
class TodoItem:
    """
    A task scheduled on a calendar day.

    Fields:
    - id: Unique identifier
    - day_key: ``YYYY-MM-DD`` key of the day the task belongs to (many per day)
    - title: Short title
    - category: One of Category
    - is_completed: Completion flag, False on creation
    - due_date: Optional deadline, independent of day_key
    - created_at: Creation time, set once; secondary sort key
    """

    day_key: str
    title: str
    category: Category
    created_at: datetime
    is_completed: bool = False
    due_date: Optional[datetime] = None
    id: UUID = field(default_factory=uuid4)

    def copy(self) -> "TodoItem":
        return replace(self)


Entity = Union[DiaryEntry, TodoItem]
EntityKind = Type[Entity]
