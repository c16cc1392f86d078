import os
from datetime import date, datetime, timedelta

import pytest

# Ensure we default to memory backend for tests to avoid filesystem dependencies
os.environ.setdefault("PERSISTENCE_BACKEND", "memory")

from mydiary.controllers import DiaryController, TodoController  # noqa: E402
from mydiary.db import SQLiteRecordStore  # noqa: E402
from mydiary.debounce import Scheduler, TimerHandle  # noqa: E402
from mydiary.errors import PersistenceError  # noqa: E402
from mydiary.repositories import InMemoryRecordStore  # noqa: E402
from mydiary.selection import DateSelection  # noqa: E402

DAY = date(2025, 1, 1)


class _ManualHandle(TimerHandle):
    def __init__(self, when, callback):
        self.when = when
        self.callback = callback
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class ManualScheduler(Scheduler):
    """Scheduler driven by ``advance()`` instead of wall-clock time."""

    def __init__(self):
        self.now = 0.0
        self.timers = []

    def call_later(self, delay, callback):
        handle = _ManualHandle(self.now + delay, callback)
        self.timers.append(handle)
        return handle

    @property
    def active(self):
        return [t for t in self.timers if not t.cancelled]

    def advance(self, seconds):
        self.now += seconds
        due = sorted((t for t in self.active if t.when <= self.now), key=lambda t: t.when)
        for timer in due:
            self.timers.remove(timer)
            timer.callback()


class FakeClock:
    def __init__(self, start=datetime(2025, 1, 1, 9, 0, 0)):
        self.current = start

    def __call__(self):
        return self.current

    def tick(self, seconds=1):
        self.current += timedelta(seconds=seconds)
        return self.current


class FlakyStore(InMemoryRecordStore):
    """In-memory store whose commits and reads can be made to fail."""

    def __init__(self):
        super().__init__()
        self.fail_persist = False
        self.fail_reads = False
        self.persist_calls = 0

    def persist(self):
        self.persist_calls += 1
        if self.fail_persist:
            self.rollback()
            raise PersistenceError("disk full")
        super().persist()

    def find_one_by_day_key(self, kind, day_key):
        if self.fail_reads:
            raise PersistenceError("corrupt store")
        return super().find_one_by_day_key(kind, day_key)

    def find_all_by_day_key(self, kind, day_key, sort=None):
        if self.fail_reads:
            raise PersistenceError("corrupt store")
        if sort is None:
            return super().find_all_by_day_key(kind, day_key)
        return super().find_all_by_day_key(kind, day_key, sort)


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store():
    return FlakyStore()


@pytest.fixture(params=["memory", "sqlite"])
def any_store(request, tmp_path):
    if request.param == "sqlite":
        s = SQLiteRecordStore(str(tmp_path / "mydiary.db"))
        yield s
        s.close()
    else:
        yield InMemoryRecordStore()


@pytest.fixture
def selection():
    return DateSelection(DAY)


@pytest.fixture
def todos(store, selection, clock):
    controller = TodoController(store, selection, clock=clock)
    yield controller
    controller.close()


@pytest.fixture
def diary(store, selection, scheduler, clock):
    controller = DiaryController(store, selection, scheduler=scheduler, autosave_delay=1.0, clock=clock)
    yield controller
    controller.close()


@pytest.fixture
def app_state(store, scheduler):
    from mydiary.settings import get_settings
    from mydiary.state import build_state

    state = build_state(settings=get_settings(), store=store, scheduler=scheduler, selection=DateSelection(DAY))
    yield state
    state.diary.close()
    state.todos.close()


@pytest.fixture
def client(app_state):
    from fastapi.testclient import TestClient

    from mydiary.main import app
    from mydiary.state import get_app_state

    app.dependency_overrides[get_app_state] = lambda: app_state
    yield TestClient(app)
    app.dependency_overrides.clear()
