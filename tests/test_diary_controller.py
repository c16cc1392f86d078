import threading
import time
from datetime import date, datetime

from mydiary.controllers.diary import LOAD_FAILED_MESSAGE, SAVE_FAILED_MESSAGE, DiaryController
from mydiary.db import SQLiteRecordStore
from mydiary.models import Category, DiaryEntry, TodoItem


def entries(store, key="2025-01-01"):
    store.rollback()  # only committed rows count
    found = store.find_one_by_day_key(DiaryEntry, key)
    return [] if found is None else [found]


class TestSave:
    def test_blank_content_with_no_entry_stores_nothing(self, diary, store):
        for text in ("", "   ", "\n\t "):
            diary.content = text
            diary.save()
            assert entries(store) == []
            assert diary.last_saved_time is None

    def test_second_save_updates_in_place(self, diary, store, clock):
        diary.content = "first"
        first = diary.save()
        clock.tick(60)
        diary.content = "second"
        second = diary.save()

        [stored] = entries(store)
        assert stored.id == first.id == second.id
        assert stored.content == "second"
        assert stored.timestamp == clock()
        assert diary.last_saved_time == clock()

    def test_clearing_content_deletes_entry(self, diary, store):
        diary.content = "something"
        diary.save()
        diary.content = "  "
        assert diary.save() is None
        assert entries(store) == []
        assert diary.last_saved_time is None

    def test_existing_entry_is_loaded_and_updated(self, store, selection, scheduler, clock):
        existing = DiaryEntry(day_key="2025-01-01", content="from yesterday's session", timestamp=datetime(2025, 1, 1, 7))
        store.upsert(existing)
        store.persist()

        controller = DiaryController(store, selection, scheduler=scheduler, clock=clock)
        assert controller.content == "from yesterday's session"
        assert controller.last_saved_time == datetime(2025, 1, 1, 7)

        controller.content = "edited"
        controller.save()
        [stored] = entries(store)
        assert stored.id == existing.id
        assert stored.content == "edited"
        controller.close()

    def test_persist_failure_keeps_content(self, diary, store):
        store.fail_persist = True
        diary.content = "unsaved thoughts"
        diary.save()
        assert diary.content == "unsaved thoughts"
        assert diary.show_error is True
        assert diary.error_message == SAVE_FAILED_MESSAGE
        assert entries(store) == []

        store.fail_persist = False
        diary.save()
        assert diary.error_message is None
        assert entries(store)[0].content == "unsaved thoughts"


class TestAutosave:
    def test_burst_of_edits_saves_once_with_last_content(self, diary, store, scheduler):
        diary.edit("H")
        scheduler.advance(0.25)
        diary.edit("He")
        scheduler.advance(0.25)
        diary.edit("Hey")
        assert store.persist_calls == 0
        assert diary.save_pending

        scheduler.advance(0.5)
        assert store.persist_calls == 0
        scheduler.advance(0.5)
        assert store.persist_calls == 1
        assert entries(store)[0].content == "Hey"
        assert not diary.save_pending

        scheduler.advance(10)
        assert store.persist_calls == 1

    def test_flush(self, diary, store):
        diary.edit("now")
        assert diary.flush() is True
        assert entries(store)[0].content == "now"
        assert diary.flush() is False

    def test_close_cancels_pending(self, diary, store, scheduler):
        diary.edit("never")
        diary.close()
        scheduler.advance(5)
        assert store.persist_calls == 0


class TestDateSelection:
    def test_select_date_saves_then_loads(self, diary, store, selection, scheduler):
        diary.edit("day one")
        diary.select_date(date(2025, 1, 2))

        assert entries(store, "2025-01-01")[0].content == "day one"
        assert selection.selected_date == date(2025, 1, 2)
        assert diary.day_key == "2025-01-02"
        assert diary.content == ""
        assert diary.last_saved_time is None

        # The pending autosave from day one must not fire later
        calls = store.persist_calls
        scheduler.advance(5)
        assert store.persist_calls == calls

        diary.edit("day two")
        diary.select_date(date(2025, 1, 1))
        assert diary.content == "day one"
        assert entries(store, "2025-01-02")[0].content == "day two"

    def test_external_selection_change_saves_current_day(self, diary, store, selection):
        diary.content = "typed before navigating"
        selection.shift(1)
        assert entries(store, "2025-01-01")[0].content == "typed before navigating"
        assert diary.day_key == "2025-01-02"

    def test_selecting_same_day_saves(self, diary, store):
        diary.content = "same day"
        diary.select_date(datetime(2025, 1, 1, 20, 0))
        assert entries(store)[0].content == "same day"
        assert diary.content == "same day"

    def test_shared_with_todo_controller(self, diary, todos, selection):
        diary.select_date(date(2025, 3, 1))
        assert todos.day_key == diary.day_key == "2025-03-01"


class TestLoadFailures:
    def test_load_failure_clears_state(self, diary, store):
        diary.content = "x"
        diary.save()
        store.fail_reads = True
        assert diary.load() is None
        assert diary.content == ""
        assert diary.last_saved_time is None
        assert diary.error_message == LOAD_FAILED_MESSAGE
        diary.dismiss_error()
        assert not diary.show_error


class TestRaces:
    def test_autosave_blocked_by_a_day_change_does_not_fire(self, store, selection, scheduler, clock):
        store.upsert(DiaryEntry(day_key="2025-01-02", content="untouched", timestamp=datetime(2025, 1, 2, 7)))
        store.persist()
        diary = DiaryController(store, selection, scheduler=scheduler, clock=clock)
        diary.edit("day one")
        [timer] = scheduler.active
        scheduler.timers.remove(timer)

        with diary._lock:
            worker = threading.Thread(target=timer.callback)
            worker.start()
            deadline = time.monotonic() + 5
            while diary.save_pending and time.monotonic() < deadline:
                time.sleep(0.01)
            assert not diary.save_pending
            # The timer has passed the debouncer and now waits for the controller
            selection.select(date(2025, 1, 2))
        worker.join(timeout=5)
        assert not worker.is_alive()

        assert entries(store, "2025-01-01")[0].content == "day one"
        [other] = entries(store, "2025-01-02")
        assert other.content == "untouched"
        assert other.timestamp == datetime(2025, 1, 2, 7)
        assert diary.day_key == "2025-01-02"
        diary.close()

    def test_failed_write_discards_staged_changes(self, tmp_path, selection, scheduler, clock):
        store = SQLiteRecordStore(str(tmp_path / "db.sqlite"))
        diary = DiaryController(store, selection, scheduler=scheduler, clock=clock)
        diary.content = "mine"
        mine = diary.save()

        # Another writer replaces the day's entry under a different id
        store.delete(mine)
        store.upsert(DiaryEntry(day_key="2025-01-01", content="theirs", timestamp=clock()))
        store.persist()

        store.upsert(TodoItem(day_key="2025-01-01", title="half-written", category=Category.OTHER, created_at=clock()))
        diary.content = "mine again"
        diary.save()
        assert diary.error_message == SAVE_FAILED_MESSAGE

        store.persist()
        assert store.find_all_by_day_key(TodoItem, "2025-01-01") == []
        assert store.find_one_by_day_key(DiaryEntry, "2025-01-01").content == "theirs"
        diary.close()
        store.close()
