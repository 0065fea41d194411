"""
Clustering engine for grouping duplicate pairs into connected clusters
Uses an index-based union-find over sequence identities
"""

from typing import List, Dict, Any, Optional, Sequence, Tuple
from collections import defaultdict

from core.config import DuplicationConfig
from .types import DuplicateCluster, SimilarityPair, StatementSequence
from utils.logger import get_logger

logger = get_logger(__name__)

SequenceKey = Tuple[str, int, int, int, int]


class UnionFind:
    """Disjoint sets over integer indices with path compression and union by rank"""

    def __init__(self):
        self.parent: List[int] = []
        self.rank: List[int] = []

    def add(self) -> int:
        index = len(self.parent)
        self.parent.append(index)
        self.rank.append(0)
        return index

    def find(self, index: int) -> int:
        root = index
        while self.parent[root] != root:
            root = self.parent[root]
        while self.parent[index] != root:
            self.parent[index], index = root, self.parent[index]
        return root

    def union(self, left: int, right: int) -> None:
        root_left, root_right = self.find(left), self.find(right)
        if root_left == root_right:
            return
        if self.rank[root_left] < self.rank[root_right]:
            root_left, root_right = root_right, root_left
        self.parent[root_right] = root_left
        if self.rank[root_left] == self.rank[root_right]:
            self.rank[root_left] += 1


class ClusteringEngine:
    """Clustering engine for duplicate pairs"""

    def __init__(self, config: Optional[DuplicationConfig] = None):
        """Initialize clustering engine with configuration"""
        self.config = config or DuplicationConfig.default()
        self.call_site_overhead = self.config.call_site_overhead

    def cluster(self, pairs: Sequence[SimilarityPair]) -> List[DuplicateCluster]:
        """
        Group pairs into connected clusters and rank them

        Args:
            pairs: Accepted duplicate pairs

        Returns:
            Clusters sorted by estimated LOC reduction (largest first)
        """
        if not pairs:
            return []

        index_of: Dict[SequenceKey, int] = {}
        sequences: List[StatementSequence] = []
        components = UnionFind()

        def node(sequence: StatementSequence) -> int:
            key = sequence.key
            if key not in index_of:
                index_of[key] = components.add()
                sequences.append(sequence)
            return index_of[key]

        for pair in pairs:
            components.union(node(pair.seq1), node(pair.seq2))

        members: Dict[int, List[StatementSequence]] = defaultdict(list)
        for index, sequence in enumerate(sequences):
            members[components.find(index)].append(sequence)

        grouped_pairs: Dict[int, List[SimilarityPair]] = defaultdict(list)
        for pair in pairs:
            grouped_pairs[components.find(index_of[pair.seq1.key])].append(pair)

        clusters = []
        for root, component_pairs in grouped_pairs.items():
            component = members[root]
            primary = min(component, key=lambda s: s.sort_key)
            clusters.append(DuplicateCluster(
                primary=primary,
                duplicates=tuple(component_pairs),
                estimated_loc_reduction=self.estimate_loc_reduction(len(component), len(primary))
            ))

        clusters.sort(key=self._rank_key)
        logger.info(f"Clustered {len(pairs)} duplicate pairs into {len(clusters)} clusters")
        return clusters

    def estimate_loc_reduction(self, occurrences: int, statement_count: int) -> int:
        """Lines saved by keeping one copy and calling it from every occurrence"""
        saved = occurrences * statement_count - (statement_count + self.call_site_overhead * occurrences)
        return max(0, saved)

    def _rank_key(self, cluster: DuplicateCluster):
        primary = cluster.primary
        return (
            -cluster.estimated_loc_reduction,
            -len(cluster.duplicates),
            primary.range.start_line,
            primary.source_file,
            primary.range.start_column
        )

    def get_clustering_statistics(self, clusters: Sequence[DuplicateCluster]) -> Dict[str, Any]:
        """Get clustering statistics"""
        if not clusters:
            return {
                "total_clusters": 0,
                "total_occurrences": 0,
                "avg_cluster_size": 0,
                "avg_similarity": 0,
                "total_loc_reduction": 0
            }

        total_occurrences = sum(cluster.occurrence_count for cluster in clusters)

        # Size distribution
        size_distribution = defaultdict(int)
        for cluster in clusters:
            size = cluster.occurrence_count
            size_category = "small" if size <= 3 else "medium" if size <= 7 else "large"
            size_distribution[size_category] += 1

        return {
            "total_clusters": len(clusters),
            "total_occurrences": total_occurrences,
            "avg_cluster_size": total_occurrences / len(clusters),
            "avg_similarity": sum(cluster.average_similarity for cluster in clusters) / len(clusters),
            "total_loc_reduction": sum(cluster.estimated_loc_reduction for cluster in clusters),
            "size_distribution": dict(size_distribution),
            "largest_cluster_size": max(cluster.occurrence_count for cluster in clusters),
            "smallest_cluster_size": min(cluster.occurrence_count for cluster in clusters)
        }
