from __future__ import annotations

from datetime import date
from threading import RLock
from typing import Callable, List, Optional

from . import day_keys
from .log import get_logger

logger = get_logger(__name__)

DateListener = Callable[[date, date], None]


# PUBLIC_INTERFACE
class DateSelection:
    """
    The day currently shown to the user, shared by every controller.

    Listeners registered with ``subscribe`` are called as ``listener(old, new)``
    whenever the selected calendar day changes, in the order they subscribed.
    Selecting the day that is already selected notifies nobody.
    """

    def __init__(self, initial: Optional[date] = None) -> None:
        self._lock = RLock()
        self._selected = day_keys.start_of_day(initial).date() if initial else day_keys.today()
        self._listeners: List[DateListener] = []

    @property
    def selected_date(self) -> date:
        return self._selected

    @property
    def day_key(self) -> str:
        return day_keys.day_key(self._selected)

    def subscribe(self, listener: DateListener) -> Callable[[], None]:
        """Register ``listener`` and return a callable that unregisters it."""
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def select(self, new_date: date) -> date:
        with self._lock:
            old = self._selected
            new = day_keys.start_of_day(new_date).date()
            if new == old:
                return old
            self._selected = new
            listeners = list(self._listeners)
        logger.debug("date_selected", old=day_keys.day_key(old), new=day_keys.day_key(new))
        for listener in listeners:
            listener(old, new)
        return new

    def shift(self, days: int) -> date:
        return self.select(day_keys.add_days(self._selected, days))

    def go_to_today(self) -> date:
        return self.select(day_keys.today())
