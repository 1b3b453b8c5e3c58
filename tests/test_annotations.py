"""
Tests for the registration decorators.
"""

from __future__ import annotations

import pytest

from gatewarden import (
    AnnotationCollector,
    AnnotationIndex,
    ConfigurationError,
    GateAnnotation,
    Policy,
    PolicyAnnotation,
    gate_ability,
    get_annotation_index,
    policy_for,
    reset_annotation_index,
)
from tests.support import Comment, Post


class TestPolicyFor:
    """Tests for @policy_for."""

    def test_records_class_annotation(self, collector: AnnotationCollector):
        @policy_for(Post, "tests.support.Comment", collector=collector)
        class SharedPolicy(Policy):
            pass

        assert collector.classes_by_annotation(PolicyAnnotation) == {
            SharedPolicy: PolicyAnnotation((Post, "tests.support.Comment")),
        }

    def test_returns_class_unchanged(self, collector: AnnotationCollector):
        class CommentPolicy(Policy):
            pass

        assert policy_for(Comment, collector=collector)(CommentPolicy) is CommentPolicy

    def test_requires_a_model(self):
        with pytest.raises(ConfigurationError):
            policy_for()

    def test_defaults_to_global_index(self):
        @policy_for(Post)
        class GlobalPolicy(Policy):
            pass

        assert GlobalPolicy in get_annotation_index().classes_by_annotation(PolicyAnnotation)


class TestGateAbility:
    """Tests for @gate_ability."""

    def test_records_method_annotation(self, collector: AnnotationCollector):
        class ReportGate:
            @gate_ability("export-reports", collector=collector)
            def can_export(self, user):
                return True

        assert collector.methods_by_annotation(GateAnnotation) == [
            {
                "class": ReportGate,
                "method": "can_export",
                "annotation": GateAnnotation("export-reports"),
            }
        ]

    def test_method_stays_plain(self, collector: AnnotationCollector):
        class ReportGate:
            @gate_ability("export-reports", collector=collector)
            def can_export(self, user):
                return user == "carol"

        assert ReportGate().can_export("carol") is True
        assert callable(ReportGate.__dict__["can_export"])

    def test_multiple_methods(self, collector: AnnotationCollector):
        class ReportGate:
            @gate_ability("export", collector=collector)
            def can_export(self, user):
                return True

            @gate_ability("share", collector=collector)
            def can_share(self, user):
                return False

        abilities = [m["annotation"].ability for m in collector.methods_by_annotation(GateAnnotation)]
        assert abilities == ["export", "share"]

    @pytest.mark.parametrize("ability", ["", None])
    def test_requires_ability_name(self, ability):
        with pytest.raises(ConfigurationError):
            gate_ability(ability)


class TestAnnotationCollector:
    """Tests for AnnotationCollector."""

    def test_unknown_marker(self, collector: AnnotationCollector):
        assert collector.classes_by_annotation(PolicyAnnotation) == {}
        assert collector.methods_by_annotation(GateAnnotation) == []

    def test_clear(self, collector: AnnotationCollector):
        collector.collect_class(Post, PolicyAnnotation((Post,)))
        collector.collect_method(Post, "view", GateAnnotation("view"))

        collector.clear()

        assert collector.classes_by_annotation(PolicyAnnotation) == {}
        assert collector.methods_by_annotation(GateAnnotation) == []

    def test_satisfies_protocol(self, collector: AnnotationCollector):
        assert isinstance(collector, AnnotationIndex)


class TestGlobalIndex:
    """Tests for the global annotation index."""

    def test_singleton(self):
        assert get_annotation_index() is get_annotation_index()

    def test_reset(self):
        index = get_annotation_index()
        index.collect_class(Post, PolicyAnnotation((Post,)))

        reset_annotation_index()

        assert get_annotation_index() is not index
        assert get_annotation_index().classes_by_annotation(PolicyAnnotation) == {}
