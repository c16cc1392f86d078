"""
Controllers holding the UI-facing state for the selected day.
"""

from .diary import DiaryController
from .todo import TodoController

__all__ = ["DiaryController", "TodoController"]
