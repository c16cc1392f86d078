from __future__ import annotations

from datetime import date, datetime
from threading import RLock
from typing import Callable, Iterable, List, Optional
from uuid import UUID

from ..errors import DiaryError
from ..log import get_logger
from ..models import Category, TodoItem
from ..repositories import TODO_ORDER, RecordStore
from ..selection import DateSelection

logger = get_logger(__name__)

FETCH_FAILED_MESSAGE = "Could not load your to-do list."
SAVE_FAILED_MESSAGE = "Saving failed. Please try again."


def _clean_title(title: str) -> str:
    cleaned = (title or "").strip()
    if not cleaned:
        raise ValueError("title must not be blank")
    return cleaned


# PUBLIC_INTERFACE
class TodoController:
    """
    To-do list for the selected day.

    ``todos`` is a cached, ordered copy of the store's items for the selected
    day (uncompleted first, then oldest first). It is rebuilt after every
    mutation and every date change. Store failures never escape; they are
    recorded in ``error_message`` / ``show_error`` for the UI.
    """

    def __init__(
        self,
        store: RecordStore,
        selection: DateSelection,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._store = store
        self._selection = selection
        self._clock = clock
        self._lock = RLock()
        self.todos: List[TodoItem] = []
        self.error_message: Optional[str] = None
        self.show_error = False
        self._unsubscribe = selection.subscribe(self._on_date_changed)
        self.fetch_for_date()

    @property
    def day_key(self) -> str:
        return self._selection.day_key

    @property
    def completed_count(self) -> int:
        return sum(1 for t in self.todos if t.is_completed)

    @property
    def total_count(self) -> int:
        return len(self.todos)

    def _on_date_changed(self, old: date, new: date) -> None:
        self.fetch_for_date()

    def _fail(self, message: str, error: DiaryError, **context) -> None:
        logger.error("todo_store_failed", error=str(error), day_key=self.day_key, **context)
        self.error_message = message
        self.show_error = True

    def dismiss_error(self) -> None:
        with self._lock:
            self.show_error = False

    # Fetch

    def fetch_for_date(self, day_key: Optional[str] = None) -> List[TodoItem]:
        """Reload the cached list for ``day_key`` (default: the selected day)."""
        key = day_key or self.day_key
        with self._lock:
            try:
                self.todos = self._store.find_all_by_day_key(TodoItem, key, TODO_ORDER)  # type: ignore[assignment]
                self.error_message = None
            except DiaryError as e:
                self.todos = []
                self._fail(FETCH_FAILED_MESSAGE, e, operation="fetch")
            return list(self.todos)

    def get(self, item_id: UUID) -> Optional[TodoItem]:
        with self._lock:
            for item in self.todos:
                if item.id == item_id:
                    return item
            return None

    # Mutations

    def _mutate(self, operation: str, action: Callable[[], None]) -> bool:
        # Caller holds the lock. The refetch runs whether or not the write
        # succeeded so the cache always mirrors the store.
        failure: Optional[DiaryError] = None
        try:
            action()
            self._store.persist()
        except DiaryError as e:
            failure = e
            self._discard_staged()
        self.fetch_for_date()
        if failure is not None:
            self._fail(SAVE_FAILED_MESSAGE, failure, operation=operation)
            return False
        return True

    def _discard_staged(self) -> None:
        try:
            self._store.rollback()
        except DiaryError as e:
            logger.error("todo_rollback_failed", error=str(e), day_key=self.day_key)

    def add(self, title: str, category: Category, due_date: Optional[datetime] = None) -> TodoItem:
        """
        Create a todo on the selected day.

        Raises:
            ValueError: if ``title`` is blank after trimming.
        """
        item = TodoItem(
            day_key=self.day_key,
            title=_clean_title(title),
            category=Category(category),
            due_date=due_date,
            created_at=self._clock(),
        )
        with self._lock:
            if self._mutate("add", lambda: self._store.upsert(item)):
                logger.debug("todo_added", todo_id=str(item.id), day_key=item.day_key)
        return item

    def toggle_completion(self, item: TodoItem) -> TodoItem:
        with self._lock:
            item.is_completed = not item.is_completed
            self._mutate("toggle", lambda: self._store.upsert(item))
        return item

    def update(
        self,
        item: TodoItem,
        title: str,
        category: Category,
        due_date: Optional[datetime] = None,
    ) -> TodoItem:
        """
        Overwrite the title, category and due date of ``item``.

        Raises:
            ValueError: if ``title`` is blank after trimming.
        """
        cleaned = _clean_title(title)
        with self._lock:
            item.title = cleaned
            item.category = Category(category)
            item.due_date = due_date
            self._mutate("update", lambda: self._store.upsert(item))
        return item

    def delete(self, item: TodoItem) -> None:
        with self._lock:
            if self._mutate("delete", lambda: self._store.delete(item)):
                logger.debug("todo_deleted", todo_id=str(item.id), day_key=item.day_key)

    def delete_at(self, positions: Iterable[int]) -> List[TodoItem]:
        """
        Delete the items at ``positions`` of the cached list.

        Every position is resolved against the list as it was before the
        call; out-of-range positions are ignored. Returns the deleted items.
        """
        with self._lock:
            snapshot = list(self.todos)
            targets = [snapshot[p] for p in sorted(set(positions)) if 0 <= p < len(snapshot)]
            if targets:
                self._mutate("delete_at", lambda: self._store.delete_many(targets))
            return targets

    def close(self) -> None:
        self._unsubscribe()
