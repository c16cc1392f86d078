from __future__ import annotations

from datetime import date, datetime
from threading import RLock
from typing import Callable, Optional

from .. import day_keys
from ..debounce import Debouncer, Scheduler
from ..errors import DiaryError
from ..log import get_logger
from ..models import DiaryEntry
from ..repositories import RecordStore
from ..selection import DateSelection
from ..settings import DEFAULT_AUTOSAVE_DELAY

logger = get_logger(__name__)

LOAD_FAILED_MESSAGE = "Could not load your diary."
SAVE_FAILED_MESSAGE = "Saving failed. Please try again."


# PUBLIC_INTERFACE
class DiaryController:
    """
    Editor state for the diary entry of the selected day.

    There is at most one entry per day. Saving blank content removes the
    day's entry instead of storing it. Edits go through ``edit()``, which
    schedules a debounced autosave; changing the selected day saves the
    current day first and cancels any pending autosave.
    """

    def __init__(
        self,
        store: RecordStore,
        selection: DateSelection,
        scheduler: Optional[Scheduler] = None,
        autosave_delay: float = DEFAULT_AUTOSAVE_DELAY,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._store = store
        self._selection = selection
        self._clock = clock
        self._lock = RLock()
        self._debouncer = Debouncer(autosave_delay, self._autosave, scheduler)
        self._entry: Optional[DiaryEntry] = None
        self._autosave_due = False
        self.day_key = selection.day_key
        self.content = ""
        self.last_saved_time: Optional[datetime] = None
        self.error_message: Optional[str] = None
        self.show_error = False
        self._unsubscribe = selection.subscribe(self._on_date_changed)
        self.load()

    @property
    def save_pending(self) -> bool:
        return self._debouncer.pending

    def _fail(self, message: str, error: DiaryError, **context) -> None:
        logger.error("diary_store_failed", error=str(error), day_key=self.day_key, **context)
        self.error_message = message
        self.show_error = True

    def dismiss_error(self) -> None:
        with self._lock:
            self.show_error = False

    # Date selection

    def select_date(self, new_date: date) -> None:
        """Save the current day, then switch the shared selection to ``new_date`` and load it."""
        if day_keys.is_same_day(new_date, self._selection.selected_date):
            with self._lock:
                self._debouncer.cancel()
                self.save()
            return
        # The selection calls back into _on_date_changed
        self._selection.select(new_date)

    def _on_date_changed(self, old: date, new: date) -> None:
        with self._lock:
            self._debouncer.cancel()
            self.save()
            self.day_key = day_keys.day_key(new)
            self.load()

    # Load / save

    def load(self) -> Optional[DiaryEntry]:
        with self._lock:
            try:
                entry = self._store.find_one_by_day_key(DiaryEntry, self.day_key)
            except DiaryError as e:
                self._entry = None
                self.content = ""
                self.last_saved_time = None
                self._fail(LOAD_FAILED_MESSAGE, e, operation="load")
                return None
            self._entry = entry  # type: ignore[assignment]
            if entry is not None:
                self.content = entry.content
                self.last_saved_time = entry.timestamp
            else:
                self.content = ""
                self.last_saved_time = None
            self.error_message = None
            return self._entry

    def _existing(self) -> Optional[DiaryEntry]:
        if self._entry is not None:
            return self._entry
        return self._store.find_one_by_day_key(DiaryEntry, self.day_key)  # type: ignore[return-value]

    def save(self) -> Optional[DiaryEntry]:
        """
        Write the current content for the loaded day.

        Blank content deletes the day's entry; anything else updates the
        existing entry in place or creates one. The in-memory content is kept
        even when the write fails.
        """
        with self._lock:
            self._autosave_due = False
            try:
                existing = self._existing()
                if not self.content.strip():
                    if existing is not None:
                        self._store.delete(existing)
                        logger.debug("diary_entry_deleted", day_key=self.day_key)
                    self._entry = None
                    self.last_saved_time = None
                else:
                    now = self._clock()
                    entry = existing or DiaryEntry(day_key=self.day_key, content=self.content, timestamp=now)
                    entry.content = self.content
                    entry.timestamp = now
                    self._store.upsert(entry)
                    self._entry = entry
                    self.last_saved_time = now
                    logger.debug("diary_entry_saved", day_key=self.day_key, length=len(self.content))
                self._store.persist()
                self.error_message = None
            except DiaryError as e:
                self._discard_staged()
                self._fail(SAVE_FAILED_MESSAGE, e, operation="save")
            return self._entry

    def _discard_staged(self) -> None:
        try:
            self._store.rollback()
        except DiaryError as e:
            logger.error("diary_rollback_failed", error=str(e), day_key=self.day_key)

    # Autosave

    def edit(self, content: str) -> None:
        """Replace the editor content and schedule an autosave."""
        with self._lock:
            self.content = content
        self.schedule_save()

    def schedule_save(self) -> None:
        with self._lock:
            self._autosave_due = True
            self._debouncer.schedule()

    def flush(self) -> bool:
        """Run a pending autosave immediately. Returns False if none was pending."""
        return self._debouncer.flush()

    def _autosave(self) -> None:
        with self._lock:
            # A save or day change since the timer fired already covered this edit
            if not self._autosave_due:
                logger.debug("autosave_skipped", day_key=self.day_key)
                return
            self.save()

    def close(self) -> None:
        with self._lock:
            self._autosave_due = False
            self._debouncer.cancel()
        self._unsubscribe()
