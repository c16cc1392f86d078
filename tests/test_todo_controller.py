from datetime import date, datetime

import pytest

from mydiary.controllers.todo import FETCH_FAILED_MESSAGE, SAVE_FAILED_MESSAGE, TodoController
from mydiary.models import Category, TodoItem


def add_three(todos, clock):
    items = []
    for title in ("one", "two", "three"):
        items.append(todos.add(title, Category.STUDY))
        clock.tick()
    return items


class TestAddAndFetch:
    def test_add_sets_defaults(self, todos, clock):
        item = todos.add("  Read chapter 3  ", Category.STUDY, datetime(2025, 1, 5))
        assert item.title == "Read chapter 3"
        assert item.is_completed is False
        assert item.day_key == "2025-01-01"
        assert item.created_at == clock()
        assert item.due_date == datetime(2025, 1, 5)
        assert [t.id for t in todos.todos] == [item.id]

    def test_scoped_to_day(self, todos, clock):
        add_three(todos, clock)
        assert todos.fetch_for_date("2025-01-02") == []
        assert [t.title for t in todos.fetch_for_date("2025-01-01")] == ["one", "two", "three"]

    def test_follows_shared_selection(self, todos, selection, clock):
        add_three(todos, clock)
        selection.select(date(2025, 1, 2))
        assert todos.todos == []
        assert todos.day_key == "2025-01-02"
        todos.add("tomorrow", Category.OTHER)
        selection.select(date(2025, 1, 1))
        assert todos.total_count == 3

    @pytest.mark.parametrize("title", ["", "   ", "\n\t"])
    def test_blank_title_rejected(self, todos, store, title):
        with pytest.raises(ValueError):
            todos.add(title, Category.OTHER)
        assert store.find_all_by_day_key(TodoItem, "2025-01-01") == []
        assert store.persist_calls == 0

    def test_ordering(self, todos, clock):
        b = todos.add("B", Category.OTHER)
        clock.tick()
        todos.add("A", Category.OTHER)
        clock.tick()
        todos.add("C", Category.OTHER)
        todos.toggle_completion(todos.get(b.id))
        assert [t.title for t in todos.todos] == ["A", "C", "B"]

    def test_counts(self, todos, clock):
        items = add_three(todos, clock)
        assert (todos.completed_count, todos.total_count) == (0, 3)
        todos.toggle_completion(todos.get(items[0].id))
        todos.toggle_completion(todos.get(items[2].id))
        assert (todos.completed_count, todos.total_count) == (2, 3)


class TestMutations:
    def test_toggle_twice_restores(self, todos):
        item = todos.add("flip", Category.PERSONAL)
        todos.toggle_completion(todos.get(item.id))
        assert todos.get(item.id).is_completed is True
        todos.toggle_completion(todos.get(item.id))
        assert todos.get(item.id).is_completed is False

    def test_update(self, todos, store):
        item = todos.add("draft", Category.OTHER)
        todos.update(todos.get(item.id), "final", Category.ASSIGNMENT, datetime(2025, 2, 1))
        [stored] = store.find_all_by_day_key(TodoItem, "2025-01-01")
        assert (stored.title, stored.category, stored.due_date) == ("final", Category.ASSIGNMENT, datetime(2025, 2, 1))
        assert stored.created_at == item.created_at

    def test_update_blank_title_rejected(self, todos):
        item = todos.add("keep", Category.OTHER)
        with pytest.raises(ValueError):
            todos.update(todos.get(item.id), " ", Category.OTHER)
        assert todos.get(item.id).title == "keep"

    def test_delete(self, todos, store):
        item = todos.add("bye", Category.OTHER)
        todos.delete(todos.get(item.id))
        assert todos.todos == []
        store.rollback()
        assert store.find_all_by_day_key(TodoItem, "2025-01-01") == []

    def test_delete_at_single_position(self, todos, store, clock):
        add_three(todos, clock)
        deleted = todos.delete_at([1])
        assert [t.title for t in deleted] == ["two"]
        assert [t.title for t in todos.todos] == ["one", "three"]
        # Committed, not just staged
        store.rollback()
        assert [t.title for t in store.find_all_by_day_key(TodoItem, "2025-01-01")] == ["one", "three"]

    def test_delete_at_resolves_positions_up_front(self, todos, clock):
        add_three(todos, clock)
        todos.delete_at([0, 1])
        assert [t.title for t in todos.todos] == ["three"]

    def test_delete_at_ignores_out_of_range(self, todos, store, clock):
        add_three(todos, clock)
        calls = store.persist_calls
        assert todos.delete_at([7, -1]) == []
        assert store.persist_calls == calls
        assert todos.total_count == 3


class TestFailures:
    def test_failed_persist_sets_error_and_refetches(self, todos, store):
        store.fail_persist = True
        todos.add("lost", Category.OTHER)
        assert todos.show_error is True
        assert todos.error_message == SAVE_FAILED_MESSAGE
        # The refetch reflects what the store actually holds
        assert todos.todos == []

        store.fail_persist = False
        todos.add("saved", Category.OTHER)
        assert todos.error_message is None
        assert [t.title for t in todos.todos] == ["saved"]

    def test_failed_toggle_reverts_to_store_truth(self, todos, store):
        item = todos.add("stable", Category.OTHER)
        store.fail_persist = True
        todos.toggle_completion(todos.get(item.id))
        assert todos.get(item.id).is_completed is False
        assert todos.error_message == SAVE_FAILED_MESSAGE

    def test_failed_fetch_empties_cache(self, todos, store, clock):
        add_three(todos, clock)
        store.fail_reads = True
        assert todos.fetch_for_date() == []
        assert todos.todos == []
        assert todos.error_message == FETCH_FAILED_MESSAGE
        todos.dismiss_error()
        assert todos.show_error is False

    def test_construction_with_broken_store(self, store, selection):
        store.fail_reads = True
        controller = TodoController(store, selection)
        assert controller.todos == []
        assert controller.show_error is True
        controller.close()
