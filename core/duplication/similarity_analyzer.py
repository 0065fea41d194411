"""
Similarity analyzer for shape-token and structural code duplication detection
Scores two statement sequences by LCS, edit distance and nested structure
"""

from typing import List, Optional, Sequence, Tuple

from core.config import DuplicationConfig
from .types import Alignment, SimilarityResult, Statement, StatementSequence
from .type_analyzer import TypeAnalyzer
from .variation_tracker import VariationTracker

# Scores are rounded so that weighted sums compare exactly against thresholds
_SCORE_PRECISION = 10


class SimilarityAnalyzer:
    """Shape-token similarity analyzer"""

    def __init__(self, config: Optional[DuplicationConfig] = None,
                 variation_tracker: Optional[VariationTracker] = None,
                 type_analyzer: Optional[TypeAnalyzer] = None):
        """Initialize similarity analyzer with configuration"""
        self.config = config or DuplicationConfig.default()
        self.variation_tracker = variation_tracker or VariationTracker()
        self.type_analyzer = type_analyzer or TypeAnalyzer()

    def compare(self, seq1: StatementSequence, seq2: StatementSequence,
                config: Optional[DuplicationConfig] = None) -> SimilarityResult:
        """
        Compare two statement sequences

        Args:
            seq1: First sequence
            seq2: Second sequence
            config: Configuration supplying the score weights (analyzer default if None)

        Returns:
            SimilarityResult with component scores, variations and type verdict
        """
        config = config or self.config
        statements1, statements2 = seq1.statements, seq2.statements
        longest = max(len(statements1), len(statements2))

        if longest == 0:
            return self._empty_result()

        alignment = self.align(statements1, statements2)
        tokens1 = [s.shape for s in statements1]
        tokens2 = [s.shape for s in statements2]

        lcs_score = len(alignment.matches) / longest
        levenshtein_score = 1.0 - self.edit_distance(tokens1, tokens2) / longest
        structural_score = self._structural_score(alignment)
        overall_score = config.weights.combine(lcs_score, levenshtein_score, structural_score)

        variations = self.variation_tracker.extract_variations(seq1, seq2, alignment)
        type_compatibility = self.type_analyzer.analyze_type_compatibility(
            variations, seq1.type_hints, seq2.type_hints
        )

        return SimilarityResult(
            lcs_score=round(lcs_score, _SCORE_PRECISION),
            levenshtein_score=round(levenshtein_score, _SCORE_PRECISION),
            structural_score=round(structural_score, _SCORE_PRECISION),
            overall_score=round(overall_score, _SCORE_PRECISION),
            normalized_length1=len(statements1),
            normalized_length2=len(statements2),
            variations=variations,
            type_compatibility=type_compatibility,
            has_control_flow_differences=self._has_control_flow_differences(
                statements1, statements2, alignment
            )
        )

    def accepts(self, seq1: StatementSequence, seq2: StatementSequence,
                result: SimilarityResult, config: Optional[DuplicationConfig] = None) -> bool:
        """Check whether a compared pair is a reportable duplicate (threshold inclusive)"""
        config = config or self.config
        if len(seq1) < config.min_lines or len(seq2) < config.min_lines:
            return False
        return result.overall_score >= config.threshold

    def align(self, statements1: Sequence[Statement], statements2: Sequence[Statement]) -> Alignment:
        """
        Align two statement lists by longest common subsequence of shape tokens.

        Among alignments of maximal length the one with the most identical tree
        shapes wins. Statements left between consecutive matches are paired
        positionally as substitutions; the remainder is unaligned.

        The backtrace always runs from the statement list with the smaller
        ordering key, so align(b, a) is the mirror of align(a, b).
        """
        if self._ordering_key(statements2) < self._ordering_key(statements1):
            return self._align(statements2, statements1).mirrored()
        return self._align(statements1, statements2)

    def _align(self, statements1: Sequence[Statement], statements2: Sequence[Statement]) -> Alignment:
        n, m = len(statements1), len(statements2)
        # dp[i][j] = (coarse matches, fine matches) over prefixes
        dp = [[(0, 0)] * (m + 1) for _ in range(n + 1)]

        for i in range(1, n + 1):
            s1 = statements1[i - 1]
            row, prev_row = dp[i], dp[i - 1]
            for j in range(1, m + 1):
                s2 = statements2[j - 1]
                best = max(prev_row[j], row[j - 1])
                if s1.shape == s2.shape:
                    diag = prev_row[j - 1]
                    candidate = (diag[0] + 1, diag[1] + (1 if s1.fine_shape == s2.fine_shape else 0))
                    if candidate > best:
                        best = candidate
                row[j] = best

        matches: List[Tuple[int, int]] = []
        i, j = n, m
        while i > 0 and j > 0:
            s1, s2 = statements1[i - 1], statements2[j - 1]
            if s1.shape == s2.shape:
                diag = dp[i - 1][j - 1]
                fine = 1 if s1.fine_shape == s2.fine_shape else 0
                if dp[i][j] == (diag[0] + 1, diag[1] + fine):
                    matches.append((i - 1, j - 1))
                    i -= 1
                    j -= 1
                    continue
            if dp[i - 1][j] >= dp[i][j - 1]:
                i -= 1
            else:
                j -= 1
        matches.reverse()

        substitutions, unaligned1, unaligned2 = self._pair_gaps(matches, n, m)
        return Alignment(
            matches=tuple(matches),
            substitutions=tuple(substitutions),
            unaligned1=tuple(unaligned1),
            unaligned2=tuple(unaligned2),
            fine_matches=dp[n][m][1]
        )

    @staticmethod
    def _ordering_key(statements: Sequence[Statement]) -> List[tuple]:
        return [
            (s.shape, s.fine_shape, s.kind, s.text, tuple((slot.kind.value, slot.text) for slot in s.slots))
            for s in statements
        ]

    @staticmethod
    def edit_distance(tokens1: Sequence[str], tokens2: Sequence[str]) -> int:
        """Levenshtein distance with unit insert, delete and substitute costs"""
        if not tokens1:
            return len(tokens2)
        if not tokens2:
            return len(tokens1)

        previous = list(range(len(tokens2) + 1))
        for i, token1 in enumerate(tokens1, 1):
            current = [i]
            for j, token2 in enumerate(tokens2, 1):
                cost = 0 if token1 == token2 else 1
                current.append(min(
                    previous[j] + 1,
                    current[j - 1] + 1,
                    previous[j - 1] + cost
                ))
            previous = current
        return previous[-1]

    def _pair_gaps(self, matches: List[Tuple[int, int]], n: int,
                   m: int) -> Tuple[List[Tuple[int, int]], List[int], List[int]]:
        """Pair the statements between consecutive matches"""
        substitutions, unaligned1, unaligned2 = [], [], []
        bounds = [(-1, -1)] + matches + [(n, m)]

        for (prev_i, prev_j), (next_i, next_j) in zip(bounds, bounds[1:]):
            gap1 = list(range(prev_i + 1, next_i))
            gap2 = list(range(prev_j + 1, next_j))
            paired = min(len(gap1), len(gap2))
            substitutions.extend(zip(gap1[:paired], gap2[:paired]))
            unaligned1.extend(gap1[paired:])
            unaligned2.extend(gap2[paired:])

        return substitutions, unaligned1, unaligned2

    def _structural_score(self, alignment: Alignment) -> float:
        if not alignment.matches:
            return 0.0
        return alignment.fine_matches / len(alignment.matches)

    def _has_control_flow_differences(self, statements1: Sequence[Statement],
                                      statements2: Sequence[Statement], alignment: Alignment) -> bool:
        for i, j in alignment.aligned:
            s1, s2 = statements1[i], statements2[j]
            if (s1.is_control_flow or s2.is_control_flow) and s1.kind != s2.kind:
                return True
        return False

    def _empty_result(self) -> SimilarityResult:
        variations = self.variation_tracker.empty()
        return SimilarityResult(
            lcs_score=0.0,
            levenshtein_score=0.0,
            structural_score=0.0,
            overall_score=0.0,
            normalized_length1=0,
            normalized_length2=0,
            variations=variations,
            type_compatibility=self.type_analyzer.analyze_type_compatibility(variations)
        )
