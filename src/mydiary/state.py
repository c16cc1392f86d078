from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from .controllers import DiaryController, TodoController
from .debounce import Scheduler
from .log import get_logger
from .repositories import RecordStore, get_record_store
from .samples import seed_sample_data
from .selection import DateSelection
from .settings import Settings, get_settings

logger = get_logger(__name__)


# PUBLIC_INTERFACE
@dataclass
class AppState:
    """Everything one running app shares: the store, the selected day and both controllers."""

    settings: Settings
    store: RecordStore
    selection: DateSelection
    todos: TodoController
    diary: DiaryController

    def shutdown(self) -> None:
        """Write any pending autosave, detach the controllers and close the store."""
        self.diary.flush()
        self.diary.close()
        self.todos.close()
        self.store.close()


def build_state(
    settings: Optional[Settings] = None,
    store: Optional[RecordStore] = None,
    scheduler: Optional[Scheduler] = None,
    selection: Optional[DateSelection] = None,
) -> AppState:
    settings = settings or get_settings()
    store = store or get_record_store(settings)
    selection = selection or DateSelection()
    if settings.seed_sample_data:
        seed_sample_data(store, selection.selected_date)
    return AppState(
        settings=settings,
        store=store,
        selection=selection,
        todos=TodoController(store, selection),
        diary=DiaryController(store, selection, scheduler=scheduler, autosave_delay=settings.autosave_delay),
    )


# PUBLIC_INTERFACE
@lru_cache(maxsize=1)
def get_app_state() -> AppState:
    """FastAPI dependency returning the process-wide AppState, built on first use."""
    return build_state()
