import pytest

from core.config import DuplicationConfig
from core.duplication.clustering_engine import ClusteringEngine, UnionFind


@pytest.fixture
def engine():
    return ClusteringEngine(DuplicationConfig.default())


def test_empty_input(engine):
    assert engine.cluster([]) == []


def test_single_pair(engine, make_pair):
    clusters = engine.cluster([make_pair(10, 20)])

    assert len(clusters) == 1
    cluster = clusters[0]
    assert cluster.primary.range.start_line == 10
    assert cluster.occurrence_count == 2
    assert cluster.estimated_loc_reduction == 3


def test_shared_sequence_joins_pairs(engine, make_pair):
    """Pairs sharing a sequence end up in one cluster."""
    pairs = [make_pair(10, 20), make_pair(10, 30), make_pair(10, 40)]

    clusters = engine.cluster(pairs)

    assert len(clusters) == 1
    cluster = clusters[0]
    assert cluster.primary.range.start_line == 10
    assert len(cluster.duplicates) == 3
    assert cluster.occurrence_count == 4
    # 4 occurrences of 5 statements, one copy kept, one call per occurrence
    assert cluster.estimated_loc_reduction == 11


def test_disconnected_pairs_form_separate_clusters(engine, make_pair):
    pairs = [make_pair(10, 20), make_pair(10, 25), make_pair(50, 60)]

    clusters = engine.cluster(pairs)

    assert len(clusters) == 2
    assert clusters[0].occurrence_count == 3
    assert clusters[0].estimated_loc_reduction == 7
    assert clusters[1].occurrence_count == 2
    assert clusters[1].primary.range.start_line == 50


def test_transitive_chain(engine, make_pair):
    """A~B and B~C cluster A, B and C together even without an A~C pair."""
    clusters = engine.cluster([make_pair(10, 20), make_pair(20, 30), make_pair(30, 40)])

    assert len(clusters) == 1
    assert [s.range.start_line for s in clusters[0].sequences] == [10, 20, 30, 40]


def test_clusters_ranked_by_loc_reduction(engine, make_pair):
    small = make_pair(10, 20, size=3)
    large = make_pair(100, 200, size=10)

    clusters = engine.cluster([small, large])

    assert [c.estimated_loc_reduction for c in clusters] == [8, 1]
    assert clusters[0].primary.range.start_line == 100


class TestTieBreaks:
    """Equal clusters are ordered by position."""

    def test_earlier_start_line_first(self, engine, make_pair):
        clusters = engine.cluster([make_pair(50, 60), make_pair(10, 20)])

        assert [c.primary.range.start_line for c in clusters] == [10, 50]

    def test_file_path_breaks_line_ties(self, engine, make_pair):
        pairs = [make_pair(10, 20, file1="B.java"), make_pair(10, 20, file1="A.java")]

        clusters = engine.cluster(pairs)

        assert [c.primary.source_file for c in clusters] == ["A.java", "B.java"]


def test_loc_reduction_never_negative(engine, make_pair):
    clusters = engine.cluster([make_pair(10, 20, size=1)])

    assert clusters[0].estimated_loc_reduction == 0


def test_estimate_respects_call_site_overhead():
    engine = ClusteringEngine(DuplicationConfig(call_site_overhead=2))

    assert engine.estimate_loc_reduction(3, 10) == 14


def test_input_order_does_not_matter(engine, make_pair):
    pairs = [make_pair(10, 20), make_pair(20, 30), make_pair(50, 60, size=7)]

    forward = engine.cluster(pairs)
    backward = engine.cluster(list(reversed(pairs)))

    assert [c.primary.key for c in forward] == [c.primary.key for c in backward]
    assert [c.estimated_loc_reduction for c in forward] == [c.estimated_loc_reduction for c in backward]
    assert [{s.key for s in c.sequences} for c in forward] == [{s.key for s in c.sequences} for c in backward]


def test_clustering_statistics(engine, make_pair):
    clusters = engine.cluster([make_pair(10, 20, similarity=0.8), make_pair(50, 60, similarity=1.0)])

    stats = engine.get_clustering_statistics(clusters)

    assert stats["total_clusters"] == 2
    assert stats["total_occurrences"] == 4
    assert stats["avg_cluster_size"] == 2
    assert stats["avg_similarity"] == pytest.approx(0.9)
    assert stats["size_distribution"] == {"small": 2}


def test_statistics_for_no_clusters(engine):
    assert engine.get_clustering_statistics([])["total_clusters"] == 0


def test_union_find():
    components = UnionFind()
    nodes = [components.add() for _ in range(5)]

    components.union(nodes[0], nodes[1])
    components.union(nodes[3], nodes[4])
    components.union(nodes[1], nodes[4])

    assert components.find(nodes[0]) == components.find(nodes[3])
    assert components.find(nodes[2]) == nodes[2]


def test_pairs_are_hashable(make_pair):
    pair = make_pair(10, 20)

    assert pair in {pair}
    assert hash(pair.similarity) == hash(make_pair(10, 20).similarity)
