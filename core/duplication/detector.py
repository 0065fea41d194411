"""
Main duplicate code detector orchestrator
Coordinates filtering, similarity scoring, clustering and recommendations
"""

import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import List, Dict, Any, Optional, Sequence, Mapping, Tuple

from core.config import ComparisonScope, DuplicationConfig
from .clustering_engine import ClusteringEngine
from .prefilter import PreFilterChain
from .recommender import RefactoringRecommender
from .similarity_analyzer import SimilarityAnalyzer
from .types import DuplicateCluster, SimilarityPair, StatementSequence
from utils.logger import get_logger

logger = get_logger(__name__)

PROJECT_REPORT_ID = "<project>"


@dataclass(frozen=True)
class DuplicationReport:
    """Duplicate analysis of one file (or of the whole project)"""
    source_file: str
    duplicates: Tuple[SimilarityPair, ...]
    clusters: Tuple[DuplicateCluster, ...]
    total_sequences: int
    candidates_compared: int
    config: DuplicationConfig
    truncated: bool = False

    def has_duplicates(self) -> bool:
        return len(self.duplicates) > 0

    def get_duplicate_count(self) -> int:
        return len(self.duplicates)

    def get_summary(self) -> str:
        summary = (f"{self.get_duplicate_count()} duplicates in {len(self.clusters)} clusters "
                   f"({self.total_sequences} sequences, {self.candidates_compared} comparisons)")
        if self.truncated:
            summary += " [truncated: time budget exceeded]"
        return summary

    def to_dict(self) -> Dict[str, Any]:
        """Convert duplication report to dictionary"""
        return {
            "source_file": self.source_file,
            "duplicate_count": self.get_duplicate_count(),
            "duplicates": [pair.to_dict() for pair in self.duplicates],
            "clusters": [cluster.to_dict() for cluster in self.clusters],
            "total_sequences": self.total_sequences,
            "candidates_compared": self.candidates_compared,
            "truncated": self.truncated,
            "summary": self.get_summary(),
            "config": self.config.model_dump(mode="json")
        }


@dataclass(frozen=True)
class ProjectAnalysis:
    """Reports for every analyzed file plus recorded failures"""
    reports: Dict[str, DuplicationReport]
    failures: Dict[str, str] = field(default_factory=dict)
    project_report: Optional[DuplicationReport] = None

    @property
    def total_duplicates(self) -> int:
        return sum(report.get_duplicate_count() for report in self.reports.values())

    @property
    def total_clusters(self) -> int:
        return sum(len(report.clusters) for report in self.reports.values())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "files_analyzed": len(self.reports),
            "total_duplicates": self.total_duplicates,
            "total_clusters": self.total_clusters,
            "reports": [report.to_dict() for report in self.reports.values()],
            "project_report": self.project_report.to_dict() if self.project_report else None,
            "failures": dict(self.failures)
        }


class DuplicateCodeDetector:
    """Main duplicate code detector orchestrator"""

    def __init__(self, config: Optional[DuplicationConfig] = None):
        """Initialize duplicate code detector with configuration"""
        self.config = config or DuplicationConfig.default()
        self.pre_filter = PreFilterChain()
        self.similarity_analyzer = SimilarityAnalyzer(self.config)
        self.clustering_engine = ClusteringEngine(self.config)
        self.recommender = RefactoringRecommender(self.config)

    def analyze_file(self, source_file: str, sequences: Sequence[StatementSequence],
                     deadline: Optional[float] = None) -> DuplicationReport:
        """
        Analyze the candidate sequences of a single file

        Args:
            source_file: File identifier
            sequences: Candidate windows supplied by the front-end
            deadline: time.monotonic() value after which comparisons stop

        Returns:
            DuplicationReport with ranked, annotated clusters
        """
        if deadline is None:
            deadline = self._deadline()
        return self._analyze(source_file, sequences, deadline, parallel=False)

    def analyze_project(self, sequences_by_file: Mapping[str, Sequence[StatementSequence]]) -> ProjectAnalysis:
        """
        Analyze every file, continuing past per-file failures

        Args:
            sequences_by_file: Candidate sequences keyed by file identifier

        Returns:
            ProjectAnalysis with per-file reports, failures and, when cross-file
            comparison is enabled, a project-wide report
        """
        deadline = self._deadline()
        file_ids = sorted(sequences_by_file)
        logger.info(f"Starting duplicate analysis of {len(file_ids)} files")

        reports: Dict[str, DuplicationReport] = {}
        failures: Dict[str, str] = {}

        with ThreadPoolExecutor(max_workers=self.config.max_workers) as executor:
            futures = {
                file_id: executor.submit(self.analyze_file, file_id, sequences_by_file[file_id], deadline)
                for file_id in file_ids
            }
            for file_id, future in futures.items():
                try:
                    reports[file_id] = future.result()
                except Exception as e:
                    logger.error(f"Duplicate analysis failed for {file_id}: {e}")
                    failures[file_id] = str(e)

        project_report = None
        if self.config.effective_scope == ComparisonScope.PROJECT:
            all_sequences = [
                sequence
                for file_id in file_ids if file_id not in failures
                for sequence in sequences_by_file[file_id]
            ]
            try:
                project_report = self._analyze(PROJECT_REPORT_ID, all_sequences, deadline, parallel=True)
            except Exception as e:
                logger.error(f"Cross-file duplicate analysis failed: {e}")
                failures[PROJECT_REPORT_ID] = str(e)

        analysis = ProjectAnalysis(reports=reports, failures=failures, project_report=project_report)
        logger.info(f"Duplicate analysis completed. Found {analysis.total_duplicates} duplicates "
                    f"in {analysis.total_clusters} clusters, {len(failures)} files failed")
        return analysis

    def _analyze(self, source_file: str, sequences: Sequence[StatementSequence],
                 deadline: Optional[float], parallel: bool) -> DuplicationReport:
        candidates = self._valid_sequences(sequences)
        duplicates, compared, truncated = self._find_duplicates(candidates, deadline, parallel)

        if truncated:
            logger.warning(f"Time budget exceeded for {source_file}; "
                           f"clustering {len(duplicates)} pairs found so far")

        clusters = self.clustering_engine.cluster(duplicates)
        clusters = self.recommender.annotate(clusters)

        return DuplicationReport(
            source_file=source_file,
            duplicates=tuple(duplicates),
            clusters=tuple(clusters),
            total_sequences=len(candidates),
            candidates_compared=compared,
            config=self.config,
            truncated=truncated
        )

    def _valid_sequences(self, sequences: Sequence[StatementSequence]) -> List[StatementSequence]:
        """Drop malformed, short and repeated sequences; order by position"""
        valid = {}
        for sequence in sequences:
            if sequence is None or sequence.is_malformed or len(sequence) < self.config.min_lines:
                logger.debug(f"Skipping unusable candidate sequence {getattr(sequence, 'key', None)}")
                continue
            valid.setdefault(sequence.key, sequence)
        return sorted(valid.values(), key=lambda s: (s.sort_key, s.key))

    def _find_duplicates(self, sequences: List[StatementSequence], deadline: Optional[float],
                         parallel: bool) -> Tuple[List[SimilarityPair], int, bool]:
        rows = range(len(sequences))
        if parallel and self.config.max_workers > 1 and len(sequences) > 2:
            with ThreadPoolExecutor(max_workers=self.config.max_workers) as executor:
                results = list(executor.map(lambda i: self._compare_row(sequences, i, deadline), rows))
        else:
            results = [self._compare_row(sequences, i, deadline) for i in rows]

        duplicates: List[SimilarityPair] = []
        compared = 0
        truncated = False
        for row_pairs, row_compared, row_truncated in results:
            duplicates.extend(row_pairs)
            compared += row_compared
            truncated = truncated or row_truncated

        duplicates.sort(key=lambda p: (-p.similarity.overall_score, p.seq1.sort_key, p.seq1.key, p.seq2.key))
        return duplicates, compared, truncated

    def _compare_row(self, sequences: List[StatementSequence], i: int,
                     deadline: Optional[float]) -> Tuple[List[SimilarityPair], int, bool]:
        """Compare sequence i with every later sequence"""
        accepted = []
        compared = 0
        seq1 = sequences[i]

        for seq2 in sequences[i + 1:]:
            if deadline is not None and time.monotonic() > deadline:
                return accepted, compared, True
            if not self.pre_filter.should_compare(seq1, seq2, self.config):
                continue

            compared += 1
            result = self.similarity_analyzer.compare(seq1, seq2, self.config)
            if self.similarity_analyzer.accepts(seq1, seq2, result, self.config):
                accepted.append(SimilarityPair(seq1=seq1, seq2=seq2, similarity=result))

        return accepted, compared, False

    def _deadline(self) -> Optional[float]:
        if self.config.time_budget_seconds is None:
            return None
        return time.monotonic() + self.config.time_budget_seconds
