"""
HistoryManager - Comprehensive Unit Tests

Tests for the scoped undo/redo manager covering:
- Stack discipline and undo/redo symmetry
- Redo invalidation
- Merge coalescing inside/outside the merge window
- Capacity eviction
- Scope isolation
- Failure non-mutation
- Subscriptions
- Per-scope serialization
"""
import asyncio
from unittest.mock import MagicMock

import pytest

from undoscope.core.commands import (
    HistoryManager,
    HistoryState,
    PropertyChangeCommand,
    PropertyHandle,
    create_batch_command,
    create_command,
    create_function_command,
    create_property_change_command,
    history_manager,
)


def counter_command(state, name="inc"):
    """Non-mergeable command incrementing state['count']."""
    return create_command(
        "increment", name,
        execute=lambda: state.__setitem__("count", state["count"] + 1),
        undo=lambda: state.__setitem__("count", state["count"] - 1),
    )


class TestHistoryManagerConfig:

    def test_defaults(self):
        manager = HistoryManager()

        assert manager.max_size == 100
        assert manager.merge_window == 1.0

    @pytest.mark.parametrize("kwargs", [{"max_size": 0}, {"merge_window": -1}])
    def test_invalid_limits(self, kwargs):
        with pytest.raises(ValueError):
            HistoryManager(**kwargs)

    def test_default_instance_exists(self):
        assert isinstance(history_manager, HistoryManager)


class TestExecute:

    @pytest.mark.asyncio
    async def test_returns_execute_result(self, manager):
        cmd = create_function_command(lambda: 42, lambda: None, "answer")

        assert await manager.execute("doc", cmd) == 42

    @pytest.mark.asyncio
    async def test_awaits_async_execute(self, manager):
        async def work():
            await asyncio.sleep(0)
            return "async-result"

        cmd = create_function_command(work, lambda: None, "async")

        assert await manager.execute("doc", cmd) == "async-result"

    @pytest.mark.asyncio
    async def test_stack_discipline(self, manager):
        state = {"count": 0}
        for i in range(5):
            await manager.execute("doc", counter_command(state, f"inc {i}"))

        assert len(manager.get_undo_stack("doc")) == 5
        assert len(manager.get_redo_stack("doc")) == 0
        assert manager.get_history("doc") == HistoryState(
            undo=[f"inc {i}" for i in range(5)], redo=[])

    @pytest.mark.asyncio
    async def test_undo_redo_symmetry(self, manager):
        state = {"count": 0}
        for _ in range(3):
            await manager.execute("doc", counter_command(state))
        assert state["count"] == 3

        for _ in range(3):
            assert await manager.undo("doc") is True
        assert state["count"] == 0
        assert manager.can_undo("doc") is False
        assert manager.can_redo("doc") is True

        for _ in range(3):
            assert await manager.redo("doc") is True
        assert state["count"] == 3
        assert manager.can_redo("doc") is False
        assert manager.can_undo("doc") is True

    @pytest.mark.asyncio
    async def test_redo_invalidated_by_execute(self, manager):
        state = {"count": 0}
        await manager.execute("doc", counter_command(state, "c1"))
        await manager.execute("doc", counter_command(state, "c2"))
        await manager.undo("doc")

        await manager.execute("doc", counter_command(state, "c3"))

        assert manager.get_redo_stack("doc") == ()
        assert await manager.redo("doc") is False
        assert manager.get_history("doc").undo == ["c1", "c3"]

    @pytest.mark.asyncio
    async def test_redo_uses_custom_redo(self, manager):
        log = []
        cmd = create_command(
            "custom", "custom",
            execute=lambda: log.append("execute"),
            undo=lambda: log.append("undo"),
            redo=lambda: log.append("redo"),
        )

        await manager.execute("doc", cmd)
        await manager.undo("doc")
        await manager.redo("doc")

        assert log == ["execute", "undo", "redo"]


class TestEmptyStacks:

    @pytest.mark.asyncio
    async def test_undo_redo_on_unknown_scope(self, manager):
        assert await manager.undo("missing") is False
        assert await manager.redo("missing") is False
        assert manager.can_undo("missing") is False
        assert manager.can_redo("missing") is False
        assert manager.get_undo_description("missing") is None
        assert manager.get_redo_description("missing") is None
        assert manager.get_history("missing") == HistoryState(undo=[], redo=[])

    @pytest.mark.asyncio
    async def test_empty_undo_does_not_notify(self, manager):
        listener = MagicMock()
        manager.subscribe("doc", listener)

        await manager.undo("doc")
        await manager.redo("doc")

        listener.assert_not_called()


class TestDescriptions:

    @pytest.mark.asyncio
    async def test_descriptions_follow_stack_tops(self, manager):
        state = {"count": 0}
        await manager.execute("doc", counter_command(state, "first"))
        await manager.execute("doc", counter_command(state, "second"))

        assert manager.get_undo_description("doc") == "second"
        assert manager.get_redo_description("doc") is None

        await manager.undo("doc")

        assert manager.get_undo_description("doc") == "first"
        assert manager.get_redo_description("doc") == "second"
        assert manager.get_history("doc") == HistoryState(undo=["first"], redo=["second"])


class TestMerge:

    @pytest.mark.asyncio
    async def test_property_changes_within_window_merge(self, manager, doc):
        await manager.execute("doc", create_property_change_command(doc, "title", "A"))
        await manager.execute("doc", create_property_change_command(doc, "title", "AB"))
        await manager.execute("doc", create_property_change_command(doc, "title", "ABC"))

        assert len(manager.get_undo_stack("doc")) == 1
        assert doc.title == "ABC"

        await manager.undo("doc")
        assert doc.title == "Untitled"
        assert manager.can_undo("doc") is False

        await manager.redo("doc")
        assert doc.title == "ABC"

    @pytest.mark.asyncio
    async def test_property_changes_outside_window_stay_separate(self, manager, doc):
        first = create_property_change_command(doc, "title", "A")
        await manager.execute("doc", first)
        second = PropertyChangeCommand(
            PropertyHandle(doc, "title"), "AB", created_at=first.created_at + 1.5)
        await manager.execute("doc", second)

        assert len(manager.get_undo_stack("doc")) == 2

        await manager.undo("doc")
        assert doc.title == "A"
        await manager.undo("doc")
        assert doc.title == "Untitled"

    @pytest.mark.asyncio
    async def test_window_boundary_is_inclusive(self, doc):
        manager = HistoryManager(merge_window=0.5)
        first = create_property_change_command(doc, "title", "A")
        await manager.execute("doc", first)
        second = PropertyChangeCommand(
            PropertyHandle(doc, "title"), "AB", created_at=first.created_at + 0.5)
        await manager.execute("doc", second)

        assert len(manager.get_undo_stack("doc")) == 1

    @pytest.mark.asyncio
    async def test_merged_command_keeps_first_timestamp(self, manager, doc):
        first = create_property_change_command(doc, "title", "A")
        await manager.execute("doc", first)
        await manager.execute("doc", create_property_change_command(doc, "title", "AB"))

        (merged,) = manager.get_undo_stack("doc")
        assert merged.created_at == first.created_at

    @pytest.mark.asyncio
    async def test_third_command_past_window_of_first_does_not_merge(self, manager, doc):
        first = create_property_change_command(doc, "title", "A")
        await manager.execute("doc", first)
        second = PropertyChangeCommand(
            PropertyHandle(doc, "title"), "AB", created_at=first.created_at + 0.6)
        await manager.execute("doc", second)
        third = PropertyChangeCommand(
            PropertyHandle(doc, "title"), "ABC", created_at=first.created_at + 1.2)
        await manager.execute("doc", third)

        assert len(manager.get_undo_stack("doc")) == 2

    @pytest.mark.asyncio
    async def test_different_types_do_not_merge(self, manager, doc):
        merge = MagicMock(return_value=None)
        await manager.execute("doc", create_command("a", "a", lambda: None, lambda: None, merge=merge))
        await manager.execute("doc", create_command("b", "b", lambda: None, lambda: None))

        merge.assert_not_called()
        assert len(manager.get_undo_stack("doc")) == 2

    @pytest.mark.asyncio
    async def test_merge_returning_none_pushes(self, manager):
        merge = MagicMock(return_value=None)
        await manager.execute("doc", create_command("a", "a1", lambda: None, lambda: None, merge=merge))
        second = create_command("a", "a2", lambda: None, lambda: None)
        await manager.execute("doc", second)

        merge.assert_called_once_with(second)
        assert manager.get_history("doc").undo == ["a1", "a2"]

    @pytest.mark.asyncio
    async def test_merge_clears_redo(self, manager, doc):
        state = {"count": 0}
        await manager.execute("doc", create_property_change_command(doc, "title", "A"))
        await manager.execute("doc", counter_command(state))
        await manager.undo("doc")
        assert manager.can_redo("doc")

        await manager.execute("doc", create_property_change_command(doc, "title", "AB"))

        assert manager.can_redo("doc") is False
        assert len(manager.get_undo_stack("doc")) == 1

    @pytest.mark.asyncio
    async def test_batches_never_merge(self, manager, doc):
        for title in ("A", "B"):
            batch = create_batch_command(
                [create_property_change_command(doc, "title", title)], "batch")
            await manager.execute("doc", batch)

        assert len(manager.get_undo_stack("doc")) == 2


class TestEviction:

    @pytest.mark.asyncio
    async def test_keeps_most_recent_commands(self):
        manager = HistoryManager(max_size=3)
        state = {"count": 0}
        for i in range(5):
            await manager.execute("doc", counter_command(state, f"c{i}"))

        assert manager.get_history("doc").undo == ["c2", "c3", "c4"]

        undone = 0
        while await manager.undo("doc"):
            undone += 1
        assert undone == 3
        assert state["count"] == 2

    @pytest.mark.asyncio
    async def test_configure_shrinks_on_next_push(self):
        manager = HistoryManager(max_size=10)
        state = {"count": 0}
        for i in range(5):
            await manager.execute("doc", counter_command(state, f"c{i}"))

        manager.configure(max_size=2)
        assert len(manager.get_undo_stack("doc")) == 5

        await manager.execute("doc", counter_command(state, "c5"))
        assert manager.get_history("doc").undo == ["c4", "c5"]


class TestScopeIsolation:

    @pytest.mark.asyncio
    async def test_scopes_are_independent(self, manager):
        state = {"count": 0}
        await manager.execute("doc1", counter_command(state, "in doc1"))
        await manager.execute("doc2", counter_command(state, "in doc2"))

        assert manager.get_history("doc1").undo == ["in doc1"]
        assert manager.get_history("doc2").undo == ["in doc2"]

        manager.clear("doc1")

        assert manager.get_undo_stack("doc1") == ()
        assert manager.get_history("doc2").undo == ["in doc2"]

    @pytest.mark.asyncio
    async def test_no_merge_across_scopes(self, manager, doc):
        await manager.execute("doc1", create_property_change_command(doc, "title", "A"))
        await manager.execute("doc2", create_property_change_command(doc, "title", "B"))

        assert len(manager.get_undo_stack("doc1")) == 1
        assert len(manager.get_undo_stack("doc2")) == 1

    @pytest.mark.asyncio
    async def test_clear_all_and_scope_listing(self, manager):
        state = {"count": 0}
        listener = MagicMock()
        manager.subscribe("doc2", listener)
        await manager.execute("doc1", counter_command(state))
        await manager.execute("doc2", counter_command(state))
        listener.reset_mock()

        assert sorted(manager.get_scopes()) == ["doc1", "doc2"]

        manager.clear_all()

        assert manager.get_scopes() == []
        assert manager.can_undo("doc1") is False
        listener.assert_called_once_with()

    @pytest.mark.asyncio
    async def test_remove_scope_drops_listeners(self, manager):
        state = {"count": 0}
        listener = MagicMock()
        manager.subscribe("doc", listener)
        await manager.execute("doc", counter_command(state))
        listener.reset_mock()

        manager.remove_scope("doc")
        await manager.execute("doc", counter_command(state))

        listener.assert_not_called()
        assert manager.get_scopes() == ["doc"]


class TestFailures:

    @pytest.mark.asyncio
    async def test_failed_execute_leaves_history_untouched(self, manager):
        state = {"count": 0}
        await manager.execute("doc", counter_command(state, "ok"))
        await manager.execute("doc", counter_command(state, "undone"))
        await manager.undo("doc")
        listener = MagicMock()
        manager.subscribe("doc", listener)

        def fail():
            raise RuntimeError("execute failed")

        with pytest.raises(RuntimeError, match="execute failed"):
            await manager.execute("doc", create_function_command(fail, lambda: None, "bad"))

        assert manager.get_history("doc") == HistoryState(undo=["ok"], redo=["undone"])
        listener.assert_not_called()

    @pytest.mark.asyncio
    async def test_rejected_async_execute_propagates(self, manager):
        async def fail():
            raise ValueError("rejected")

        with pytest.raises(ValueError, match="rejected"):
            await manager.execute("doc", create_function_command(fail, lambda: None, "bad"))

        assert manager.get_undo_stack("doc") == ()

    @pytest.mark.asyncio
    async def test_failed_undo_keeps_command_on_undo_stack(self, manager):
        def fail():
            raise RuntimeError("undo failed")

        cmd = create_function_command(lambda: None, fail, "fragile")
        await manager.execute("doc", cmd)

        with pytest.raises(RuntimeError, match="undo failed"):
            await manager.undo("doc")

        assert manager.get_undo_stack("doc") == (cmd,)
        assert manager.get_redo_stack("doc") == ()

    @pytest.mark.asyncio
    async def test_failed_redo_keeps_command_on_redo_stack(self, manager):
        def fail():
            raise RuntimeError("redo failed")

        cmd = create_function_command(lambda: None, lambda: None, "fragile", redo_fn=fail)
        await manager.execute("doc", cmd)
        await manager.undo("doc")

        with pytest.raises(RuntimeError, match="redo failed"):
            await manager.redo("doc")

        assert manager.get_undo_stack("doc") == ()
        assert manager.get_redo_stack("doc") == (cmd,)


class TestSubscriptions:

    @pytest.mark.asyncio
    async def test_notified_after_each_mutation(self, manager):
        state = {"count": 0}
        listener = MagicMock()
        manager.subscribe("doc", listener)

        await manager.execute("doc", counter_command(state))
        await manager.undo("doc")
        await manager.redo("doc")
        manager.clear("doc")

        assert listener.call_count == 4

    @pytest.mark.asyncio
    async def test_listener_sees_updated_state(self, manager):
        state = {"count": 0}
        seen = []
        manager.subscribe("doc", lambda: seen.append(manager.can_undo("doc")))

        await manager.execute("doc", counter_command(state))
        await manager.undo("doc")

        assert seen == [True, False]

    @pytest.mark.asyncio
    async def test_unsubscribe(self, manager):
        state = {"count": 0}
        listener = MagicMock()
        unsubscribe = manager.subscribe("doc", listener)

        unsubscribe()
        await manager.execute("doc", counter_command(state))

        listener.assert_not_called()

    @pytest.mark.asyncio
    async def test_only_scope_listeners_are_notified(self, manager):
        state = {"count": 0}
        other = MagicMock()
        manager.subscribe("other", other)

        await manager.execute("doc", counter_command(state))

        other.assert_not_called()

    @pytest.mark.asyncio
    async def test_unsubscribe_during_notification(self, manager):
        state = {"count": 0}
        calls = []
        unsubscribers = {}

        def first():
            calls.append("first")
            unsubscribers["first"]()
            unsubscribers["second"]()

        def second():
            calls.append("second")

        unsubscribers["first"] = manager.subscribe("doc", first)
        unsubscribers["second"] = manager.subscribe("doc", second)

        await manager.execute("doc", counter_command(state))
        await manager.execute("doc", counter_command(state))

        assert calls == ["first"]

    @pytest.mark.asyncio
    async def test_listener_error_does_not_break_execute(self, manager):
        state = {"count": 0}
        manager.subscribe("doc", MagicMock(side_effect=RuntimeError("listener")))

        await manager.execute("doc", counter_command(state))

        assert manager.can_undo("doc")


class TestSerialization:

    @pytest.mark.asyncio
    async def test_operations_on_one_scope_do_not_interleave(self, manager):
        log = []

        def slow(name):
            async def run():
                log.append(f"{name}-start")
                await asyncio.sleep(0.01)
                log.append(f"{name}-end")
            return create_function_command(run, lambda: None, name)

        await asyncio.gather(
            manager.execute("doc", slow("one")),
            manager.execute("doc", slow("two")),
        )

        assert log == ["one-start", "one-end", "two-start", "two-end"]
        assert manager.get_history("doc").undo == ["one", "two"]

    @pytest.mark.asyncio
    async def test_undo_waits_for_inflight_execute(self, manager):
        release = asyncio.Event()

        async def blocked():
            await release.wait()

        execute_task = asyncio.ensure_future(
            manager.execute("doc", create_function_command(blocked, lambda: None, "blocked")))
        await asyncio.sleep(0)
        undo_task = asyncio.ensure_future(manager.undo("doc"))
        await asyncio.sleep(0)

        assert not undo_task.done()

        release.set()
        await execute_task

        assert await undo_task is True
        assert manager.get_history("doc").redo == ["blocked"]

    @pytest.mark.asyncio
    async def test_different_scopes_run_concurrently(self, manager):
        started_b = asyncio.Event()

        async def wait_for_b():
            await started_b.wait()

        async def start_b():
            started_b.set()

        await asyncio.wait_for(asyncio.gather(
            manager.execute("a", create_function_command(wait_for_b, lambda: None, "a")),
            manager.execute("b", create_function_command(start_b, lambda: None, "b")),
        ), timeout=1)

        assert manager.can_undo("a") and manager.can_undo("b")

    @pytest.mark.asyncio
    async def test_clear_during_undo(self, manager):
        state = {"count": 0}
        release = asyncio.Event()

        async def slow_undo():
            await release.wait()
            state["count"] -= 1

        await manager.execute("doc", create_function_command(
            lambda: state.__setitem__("count", 1), slow_undo, "slow"))
        undo_task = asyncio.ensure_future(manager.undo("doc"))
        await asyncio.sleep(0)

        manager.clear("doc")
        release.set()

        assert await undo_task is True
        assert state["count"] == 0
        assert manager.get_history("doc") == HistoryState()

    @pytest.mark.asyncio
    async def test_clear_all_during_redo(self, manager):
        release = asyncio.Event()

        async def slow_redo():
            await release.wait()

        command = create_function_command(lambda: None, lambda: None, "slow", redo_fn=slow_redo)
        await manager.execute("doc", command)
        await manager.undo("doc")
        redo_task = asyncio.ensure_future(manager.redo("doc"))
        await asyncio.sleep(0)

        manager.clear_all()
        release.set()

        assert await redo_task is True
        assert manager.get_scopes() == []
        assert not manager.can_undo("doc")

    @pytest.mark.asyncio
    async def test_remove_scope_releases_idle_lock(self, manager):
        await manager.execute("doc", create_function_command(lambda: None, lambda: None, "one"))
        assert "doc" in manager._locks

        manager.remove_scope("doc")

        assert "doc" not in manager._locks
