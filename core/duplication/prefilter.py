"""
Pre-filters that skip sequence pairs before the expensive comparison.

Every filter is sound: it only rejects a pair that must not be compared or
whose best achievable overall score is below the threshold.
"""

from abc import ABC, abstractmethod
from collections import Counter
from typing import List, Optional

from core.config import ComparisonScope, DuplicationConfig
from .types import StatementSequence

_TOLERANCE = 1e-9


class PreFilter(ABC):
    """A cheap check run before two sequences are compared"""

    @abstractmethod
    def should_compare(self, seq1: StatementSequence, seq2: StatementSequence,
                       config: DuplicationConfig) -> bool:
        pass


def _score_bound(ratio: float, config: DuplicationConfig) -> float:
    # LCS and Levenshtein scores are both capped by the ratio; structure by 1
    weights = config.weights
    return (weights.lcs + weights.levenshtein) * ratio + weights.structural


class OverlapFilter(PreFilter):
    """Rejects sliding windows that cover the same lines of one file"""

    def should_compare(self, seq1, seq2, config):
        if seq1.source_file != seq2.source_file:
            return True
        return not seq1.range.overlaps(seq2.range)


class ScopeFilter(PreFilter):
    """Restricts pairs to the configured comparison scope"""

    def should_compare(self, seq1, seq2, config):
        scope = config.effective_scope
        if scope == ComparisonScope.PROJECT:
            return True
        if seq1.source_file != seq2.source_file:
            return False
        if scope == ComparisonScope.FILE:
            return True
        if scope == ComparisonScope.CLASS:
            return seq1.class_key == seq2.class_key
        return (seq1.containing_method is not None
                and seq1.containing_method == seq2.containing_method)


class SizeFilter(PreFilter):
    """Rejects pairs whose length ratio alone keeps them below the threshold"""

    def should_compare(self, seq1, seq2, config):
        longest = max(len(seq1), len(seq2))
        if longest == 0:
            return False
        ratio = min(len(seq1), len(seq2)) / longest
        return _score_bound(ratio, config) >= config.threshold - _TOLERANCE


class TokenOverlapFilter(PreFilter):
    """Rejects pairs sharing too few shape tokens to reach the threshold"""

    def should_compare(self, seq1, seq2, config):
        longest = max(len(seq1), len(seq2))
        if longest == 0:
            return False
        shared = Counter(seq1.shapes) & Counter(seq2.shapes)
        ratio = sum(shared.values()) / longest
        return _score_bound(ratio, config) >= config.threshold - _TOLERANCE


class PreFilterChain:
    """Runs filters cheapest first and stops at the first rejection"""

    def __init__(self, filters: Optional[List[PreFilter]] = None):
        self.filters = filters if filters is not None else [
            OverlapFilter(),
            ScopeFilter(),
            SizeFilter(),
            TokenOverlapFilter(),
        ]

    def should_compare(self, seq1: StatementSequence, seq2: StatementSequence,
                       config: DuplicationConfig) -> bool:
        return all(f.should_compare(seq1, seq2, config) for f in self.filters)
