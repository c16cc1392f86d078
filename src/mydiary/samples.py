from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Optional

from . import day_keys
from .log import get_logger
from .models import Category, DiaryEntry, TodoItem
from .repositories import RecordStore

logger = get_logger(__name__)

SAMPLE_DIARY_TEXT = "Started the project today: a to-do and diary app with a local store."


# PUBLIC_INTERFACE
def seed_sample_data(store: RecordStore, day: Optional[date] = None, count: int = 5) -> None:
    """
    Populate ``store`` with demo content for ``day`` (default today) and persist it.

    Adds ``count`` todos cycling through every category, every other one
    completed, plus one diary entry. Each part is only added when the day has
    none yet, so seeding again leaves the store unchanged.
    """
    day = day or day_keys.today()
    key = day_keys.day_key(day)
    categories = list(Category)
    base = datetime.now()

    added = 0
    if not store.find_all_by_day_key(TodoItem, key):
        for i in range(count):
            store.upsert(
                TodoItem(
                    day_key=key,
                    title=f"Sample task {i + 1}",
                    category=categories[i % len(categories)],
                    is_completed=i % 2 == 0,
                    created_at=base + timedelta(microseconds=i),
                )
            )
        added = count
    if store.find_one_by_day_key(DiaryEntry, key) is None:
        store.upsert(DiaryEntry(day_key=key, content=SAMPLE_DIARY_TEXT, timestamp=base))
    store.persist()
    logger.info("sample_data_seeded", day_key=key, todos=added)
