import pytest

from builders import assign, call, control
from core.config import ComparisonScope, DuplicationConfig
from core.duplication.prefilter import (
    OverlapFilter, PreFilterChain, ScopeFilter, SizeFilter, TokenOverlapFilter
)
from core.duplication.similarity_analyzer import SimilarityAnalyzer


def _body(size):
    return [assign("x", str(i)) for i in range(size)]


@pytest.fixture
def config():
    return DuplicationConfig.default()


class TestOverlapFilter:
    def test_overlapping_windows_in_one_file(self, config, make_sequence):
        seq1 = make_sequence(_body(5), 10)
        seq2 = make_sequence(_body(5), 12)

        assert not OverlapFilter().should_compare(seq1, seq2, config)

    def test_adjacent_windows(self, config, make_sequence):
        seq1 = make_sequence(_body(5), 10)
        seq2 = make_sequence(_body(5), 15)

        assert OverlapFilter().should_compare(seq1, seq2, config)

    def test_same_lines_in_different_files(self, config, make_sequence):
        seq1 = make_sequence(_body(5), 10, source_file="A.java")
        seq2 = make_sequence(_body(5), 10, source_file="B.java")

        assert OverlapFilter().should_compare(seq1, seq2, config)


class TestScopeFilter:
    def test_file_scope_rejects_other_files(self, config, make_sequence):
        seq1 = make_sequence(_body(5), 10, source_file="A.java")
        seq2 = make_sequence(_body(5), 30, source_file="B.java")

        assert not ScopeFilter().should_compare(seq1, seq2, config)

    def test_cross_file_comparison_widens_scope(self, make_sequence):
        config = DuplicationConfig(cross_file_comparison=True, comparison_scope=ComparisonScope.METHOD)
        seq1 = make_sequence(_body(5), 10, source_file="A.java")
        seq2 = make_sequence(_body(5), 30, source_file="B.java")

        assert ScopeFilter().should_compare(seq1, seq2, config)

    def test_method_scope(self, make_sequence):
        config = DuplicationConfig(comparison_scope=ComparisonScope.METHOD)
        same = make_sequence(_body(5), 30, method="process")
        other = make_sequence(_body(5), 50, method="validate")
        seq1 = make_sequence(_body(5), 10, method="process")

        assert ScopeFilter().should_compare(seq1, same, config)
        assert not ScopeFilter().should_compare(seq1, other, config)

    def test_class_scope(self, make_sequence):
        config = DuplicationConfig(comparison_scope=ComparisonScope.CLASS)
        seq1 = make_sequence(_body(5), 10, method="process", owner="Orders")
        sibling = make_sequence(_body(5), 30, method="validate", owner="Orders")
        nested = make_sequence(_body(5), 50, method="process", owner="Orders.Line")

        assert ScopeFilter().should_compare(seq1, sibling, config)
        assert not ScopeFilter().should_compare(seq1, nested, config)


class TestSizeFilter:
    def test_very_different_lengths_are_skipped(self, config, make_sequence):
        seq1 = make_sequence(_body(5), 10)
        seq2 = make_sequence(_body(10), 30)

        assert not SizeFilter().should_compare(seq1, seq2, config)

    def test_close_lengths_are_compared(self, config, make_sequence):
        seq1 = make_sequence(_body(5), 10)
        seq2 = make_sequence(_body(6), 30)

        assert SizeFilter().should_compare(seq1, seq2, config)

    def test_zero_threshold_compares_everything(self, make_sequence):
        config = DuplicationConfig(threshold=0.0)
        seq1 = make_sequence(_body(1), 10)
        seq2 = make_sequence(_body(20), 30)

        assert SizeFilter().should_compare(seq1, seq2, config)


class TestTokenOverlapFilter:
    def test_disjoint_shapes_are_skipped(self, config, make_sequence):
        seq1 = make_sequence(_body(5), 10)
        seq2 = make_sequence([call("save", "1")] * 5, 30)

        assert not TokenOverlapFilter().should_compare(seq1, seq2, config)

    def test_mostly_shared_shapes_are_compared(self, config, make_sequence):
        seq1 = make_sequence(_body(5), 10)
        seq2 = make_sequence(_body(4) + [control("if")], 30)

        assert TokenOverlapFilter().should_compare(seq1, seq2, config)


def test_chain_rejects_on_first_failing_filter(config, make_sequence):
    seq1 = make_sequence(_body(5), 10)

    assert PreFilterChain().should_compare(seq1, make_sequence(_body(5), 30), config)
    assert not PreFilterChain().should_compare(seq1, make_sequence(_body(5), 12), config)


def test_empty_chain_compares_everything(config, make_sequence):
    seq1 = make_sequence(_body(5), 10)

    assert PreFilterChain([]).should_compare(seq1, make_sequence(_body(5), 12), config)


@pytest.mark.parametrize("other", [
    _body(10),
    _body(2) + [call("save", "1")] * 3,
    [control("if"), call("log"), call("flush"), assign("y", "2"), call("save", "2")],
    _body(3),
])
def test_skipped_pairs_never_reach_threshold(config, make_sequence, other):
    """Any pair the size and token filters skip scores below the threshold."""
    seq1 = make_sequence(_body(5), 10)
    seq2 = make_sequence(other, 30)
    chain = PreFilterChain([SizeFilter(), TokenOverlapFilter()])

    if not chain.should_compare(seq1, seq2, config):
        result = SimilarityAnalyzer(config).compare(seq1, seq2)
        assert result.overall_score < config.threshold
