"""
Duplicate code detection module
Supports shape-token similarity, variation and type analysis, clustering and refactoring recommendations
"""

from .detector import DuplicateCodeDetector, DuplicationReport, ProjectAnalysis
from .similarity_analyzer import SimilarityAnalyzer
from .variation_tracker import VariationTracker
from .type_analyzer import TypeAnalyzer
from .clustering_engine import ClusteringEngine
from .recommender import RefactoringRecommender

__all__ = [
    'DuplicateCodeDetector',
    'DuplicationReport',
    'ProjectAnalysis',
    'SimilarityAnalyzer',
    'VariationTracker',
    'TypeAnalyzer',
    'ClusteringEngine',
    'RefactoringRecommender'
]
