"""
Listener Registry Tests
"""

import pytest

from weft.errors import CyclicDependencyError, MissingDependencyError
from weft.kernel.cancellation import CancellationToken
from weft.kernel.registry import ListenerRegistry


def noop(event, ctx):
    return None


class TestRegistration:
    def test_add_generates_ids(self):
        registry = ListenerRegistry()

        first = registry.add("a", noop)
        second = registry.add("a", noop)

        assert first.id != second.id
        assert first.id.startswith("listener_")

    def test_bucket_sorted_by_priority_then_registration(self):
        registry = ListenerRegistry()
        registry.add("a", noop, id="low", priority=-1)
        registry.add("a", noop, id="first", priority=5)
        registry.add("a", noop, id="mid", priority=0)
        registry.add("a", noop, id="second", priority=5)

        assert [entry.id for entry in registry.collect("a")] == ["first", "second", "mid", "low"]

    def test_after_string_is_normalized(self):
        registry = ListenerRegistry()

        entry = registry.add("a", noop, after="x")

        assert entry.after == ("x",)

    def test_same_callback_twice_creates_two_entries(self):
        registry = ListenerRegistry()
        registry.add("a", noop)
        registry.add("a", noop)

        assert registry.count("a") == 2


class TestRemoval:
    def test_remove_by_identity(self):
        registry = ListenerRegistry()
        entry = registry.add("a", noop)
        other = registry.add("a", noop)

        assert registry.remove(entry) is True
        assert registry.remove(entry) is False
        assert registry.contains(other)
        assert registry.count("a") == 1

    def test_empty_bucket_is_dropped(self):
        registry = ListenerRegistry()
        entry = registry.add("a", noop)

        registry.remove(entry)

        assert registry.patterns() == []

    def test_remove_matching_by_callback_or_id(self):
        registry = ListenerRegistry()

        def other(event, ctx):
            return None

        registry.add("a", noop, id="one")
        registry.add("a", other, id="two")

        assert registry.remove_matching("a", "two") == 1
        assert registry.remove_matching("a", noop) == 1
        assert registry.count() == 0

    def test_clear_releases_token_callbacks(self):
        registry = ListenerRegistry()
        token = CancellationToken()
        registry.add("a", noop, token=token)
        registry.add("b", noop)

        assert registry.clear() == 2
        assert token._callbacks == []

    def test_token_cancel_removes_entry(self):
        registry = ListenerRegistry()
        token = CancellationToken()
        registry.add("a", noop, token=token)

        token.cancel()

        assert registry.count("a") == 0


class TestCollect:
    def test_collect_is_snapshot(self):
        registry = ListenerRegistry()
        registry.add("a", noop)

        snapshot = registry.collect("a")
        registry.add("a", noop)

        assert len(snapshot) == 1

    def test_collect_spans_wildcard_buckets(self):
        registry = ListenerRegistry()
        registry.add("user:created", noop, id="exact")
        registry.add("user:*", noop, id="prefix")
        registry.add("post:*", noop, id="other")

        ids = [entry.id for entry in registry.collect("user:created")]

        assert ids == ["exact", "prefix"]

    def test_collect_without_wildcards(self):
        registry = ListenerRegistry()
        registry.add("user:*", noop)

        assert registry.collect("user:created", wildcard=False) == []


class TestOrder:
    def test_priority_only_single_level(self):
        registry = ListenerRegistry()
        registry.add("x:*", noop, id="wild", priority=1)
        registry.add("x:a", noop, id="exact", priority=10)

        levels = registry.order(registry.collect("x:a"))

        assert [[entry.id for entry in level] for level in levels] == [["exact", "wild"]]

    def test_levels_follow_dependencies(self):
        registry = ListenerRegistry()
        registry.add("e", noop, id="c", after=["a", "b"], priority=100)
        registry.add("e", noop, id="b", after="a", priority=50)
        registry.add("e", noop, id="a")
        registry.add("e", noop, id="free", priority=-5)

        levels = registry.order(registry.collect("e"))

        assert [[entry.id for entry in level] for level in levels] == [
            ["a", "free"],
            ["b"],
            ["c"],
        ]

    def test_missing_dependency(self):
        registry = ListenerRegistry()
        registry.add("e", noop, id="a", after="ghost")

        with pytest.raises(MissingDependencyError) as exc_info:
            registry.order(registry.collect("e"))

        assert exc_info.value.listener_id == "a"
        assert exc_info.value.dependency == "ghost"

    def test_dependency_on_other_event_is_missing(self):
        """Dependencies only resolve among listeners of the same emission"""
        registry = ListenerRegistry()
        registry.add("other", noop, id="a")
        registry.add("e", noop, id="b", after="a")

        with pytest.raises(MissingDependencyError):
            registry.order(registry.collect("e"))

    def test_cycle(self):
        registry = ListenerRegistry()
        registry.add("e", noop, id="a", after="b")
        registry.add("e", noop, id="b", after="a")

        with pytest.raises(CyclicDependencyError):
            registry.order(registry.collect("e"))
