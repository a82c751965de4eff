"""
Context Merger Tests
"""

import pytest

from weft.composition.mergers import (
    FunctionMerger,
    NamespacedMerger,
    OverrideMerger,
    resolve_merger,
)
from weft.types import ConflictInfo


CONTEXTS = {
    "A": {"x": 1, "only_a": "a"},
    "B": {"x": 2, "only_b": "b"},
}


class TestNamespacedMerger:
    def test_prefixes_keys_with_source(self):
        result = NamespacedMerger().merge_with_conflicts(CONTEXTS, ["A", "B"])

        assert result.context == {"A:x": 1, "A:only_a": "a", "B:x": 2, "B:only_b": "b"}
        assert result.conflicts == []

    def test_custom_separator(self):
        merged = NamespacedMerger(separator=".").merge({"A": {"x": 1}}, ["A"])

        assert merged == {"A.x": 1}

    def test_source_names_with_delimiter(self):
        merged = NamespacedMerger().merge({"user:loaded": {"name": "Alice"}}, ["user:loaded"])

        assert merged == {"user:loaded:name": "Alice"}


class TestOverrideMerger:
    def test_last_source_wins(self):
        result = OverrideMerger().merge_with_conflicts(CONTEXTS, ["A", "B"])

        assert result.context == {"x": 2, "only_a": "a", "only_b": "b"}
        assert result.conflicts == [ConflictInfo(key="x", sources=["A", "B"], values=[1, 2])]

    def test_declaration_order_decides(self):
        result = OverrideMerger().merge_with_conflicts(CONTEXTS, ["B", "A"])

        assert result.context["x"] == 1
        assert result.conflicts[0].sources == ["B", "A"]

    def test_equal_values_are_still_conflicts(self):
        result = OverrideMerger().merge_with_conflicts(
            {"A": {"x": 1}, "B": {"x": 1}, "C": {"x": 1}}, ["A", "B", "C"]
        )

        assert result.conflicts == [ConflictInfo(key="x", sources=["A", "B", "C"], values=[1, 1, 1])]

    def test_missing_source_is_skipped(self):
        result = OverrideMerger().merge_with_conflicts({"A": {"x": 1}}, ["A", "B"])

        assert result.context == {"x": 1}
        assert result.conflicts == []


class TestFunctionMerger:
    def test_wraps_callable(self):
        def total(contexts):
            return {"total": sum(ctx["x"] for ctx in contexts.values())}

        result = FunctionMerger(total).merge_with_conflicts(CONTEXTS, ["A", "B"])

        assert result.context == {"total": 3}
        assert result.conflicts == []


class TestResolveMerger:
    def test_default_is_namespaced(self):
        assert isinstance(resolve_merger(None), NamespacedMerger)

    def test_instance_passthrough(self):
        merger = OverrideMerger()

        assert resolve_merger(merger) is merger

    def test_callable_wrapped(self):
        merger = resolve_merger(lambda contexts: {})

        assert isinstance(merger, FunctionMerger)

    def test_invalid_value(self):
        with pytest.raises(TypeError):
            resolve_merger(42)
