"""
Refactoring recommendations for duplicate clusters
"""

import re
from dataclasses import replace
from typing import List, Optional, Sequence

from core.config import DuplicationConfig
from .types import (
    ClusterRecommendation, ConfidenceLevel, DuplicateCluster, RefactoringStrategy
)

_WORD_RE = re.compile(r'[A-Z]+(?![a-z])|[A-Z]?[a-z]+|\d+')
GENERIC_METHOD_NAME = "extractedMethod"


def split_identifier(name: str) -> List[str]:
    """Split a camelCase or snake_case identifier into lowercase words"""
    # Drop qualifiers such as "Owner#method(int)" or "pkg.Owner.method"
    simple = re.split(r'[#.]', name.split('(')[0])[-1]
    return [word.lower() for word in _WORD_RE.findall(simple)]


class RefactoringRecommender:
    """Assigns a consolidation strategy and confidence to each cluster"""

    def __init__(self, config: Optional[DuplicationConfig] = None):
        self.config = config or DuplicationConfig.default()

    def recommend(self, cluster: DuplicateCluster, ordinal: int = 1) -> ClusterRecommendation:
        """
        Recommend how to consolidate a cluster

        Args:
            cluster: Cluster to judge
            ordinal: Rank of the cluster, used for the fallback method name

        Returns:
            ClusterRecommendation
        """
        reasons = []
        all_safe = bool(cluster.duplicates) and all(p.similarity.can_refactor for p in cluster.duplicates)
        owners = {sequence.class_key for sequence in cluster.sequences}

        if not all_safe:
            strategy = RefactoringStrategy.MANUAL_REVIEW
            reasons.extend(self._unsafe_reasons(cluster))
        elif len(owners) == 1:
            strategy = RefactoringStrategy.EXTRACT_METHOD
            reasons.append("All duplicates are type-safe and share one class")
        else:
            strategy = RefactoringStrategy.UTILITY_CLASS
            reasons.append(f"All duplicates are type-safe but span {len(owners)} classes or files")

        score = cluster.average_similarity
        confidence = self._confidence(score)
        if any(p.similarity.variations.has_structural_mismatch for p in cluster.duplicates):
            confidence = confidence.lowered()
            reasons.append("Some statements could not be aligned")

        method_name = None
        if strategy != RefactoringStrategy.MANUAL_REVIEW:
            method_name = self.suggest_method_name(cluster, ordinal)

        return ClusterRecommendation(
            strategy=strategy,
            confidence=confidence,
            confidence_score=score,
            suggested_method_name=method_name,
            reasons=tuple(reasons)
        )

    def annotate(self, clusters: Sequence[DuplicateCluster]) -> List[DuplicateCluster]:
        """Return new clusters carrying their recommendation"""
        return [
            replace(cluster, recommendation=self.recommend(cluster, ordinal))
            for ordinal, cluster in enumerate(clusters, 1)
        ]

    def suggest_method_name(self, cluster: DuplicateCluster, ordinal: int = 1) -> str:
        """Name built from the words every containing method shares"""
        sequences = cluster.sequences
        names = [s.containing_method for s in sequences]
        if not names or any(name is None for name in names):
            return f"{GENERIC_METHOD_NAME}{ordinal}"

        primary_words = split_identifier(cluster.primary.containing_method or names[0])
        others = [set(split_identifier(name)) for name in names]
        common = []
        for word in primary_words:
            if word not in common and all(word in words for words in others):
                common.append(word)

        if not common or common[0].isdigit():
            return f"{GENERIC_METHOD_NAME}{ordinal}"
        return common[0] + ''.join(word.capitalize() for word in common[1:])

    def _confidence(self, score: float) -> ConfidenceLevel:
        if score >= self.config.high_confidence:
            return ConfidenceLevel.HIGH
        if score >= self.config.medium_confidence:
            return ConfidenceLevel.MEDIUM
        return ConfidenceLevel.LOW

    def _unsafe_reasons(self, cluster: DuplicateCluster) -> List[str]:
        reasons = []
        if any(p.similarity.has_control_flow_differences for p in cluster.duplicates):
            reasons.append("Control flow differs between duplicates")
        if any(not p.similarity.type_compatibility.all_variations_type_safe for p in cluster.duplicates):
            reasons.append("Variations cannot be unified into typed parameters")
        return reasons or ["No duplicate pairs to judge"]
