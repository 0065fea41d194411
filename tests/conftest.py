import os
import pytest
from unittest.mock import patch

# Set test environment variables before importing app modules
os.environ["LOG_LEVEL"] = "INFO"
os.environ["ALLOWED_ORIGINS"] = "http://localhost:3000"

from builders import assign
from core.duplication.types import (
    SimilarityPair, SimilarityResult, SourceRange, StatementSequence,
    TypeCompatibility, VariationAnalysis
)


@pytest.fixture(autouse=True)
def mock_settings():
    """Mock settings for all tests."""
    with patch.dict(os.environ, {
        "LOG_LEVEL": "INFO",
        "ALLOWED_ORIGINS": "http://localhost:3000",
    }):
        yield


@pytest.fixture
def make_sequence():
    """Factory for statement sequences."""
    def _make(statements, start_line=10, source_file="Test.java", method="process",
              owner="Test", type_hints=None, start_column=1):
        statements = tuple(statements)
        return StatementSequence(
            statements=statements,
            range=SourceRange(start_line, start_line + max(len(statements), 1) - 1, start_column, 10),
            source_file=source_file,
            containing_method=method,
            containing_class=owner,
            type_hints=type_hints or {},
        )
    return _make


@pytest.fixture
def make_pair(make_sequence):
    """Factory for pairs with fixed scores and no variations."""
    def _make(start1, start2, similarity=0.9, size=5, file1="Test.java", file2=None,
              method1="process", method2="process", owner1="Test", owner2=None, can_refactor=True):
        seq1 = make_sequence([assign("x", str(i)) for i in range(size)], start1, file1, method1, owner1)
        seq2 = make_sequence([assign("x", str(i)) for i in range(size)], start2, file2 or file1,
                             method2, owner2 or owner1)
        result = SimilarityResult(
            lcs_score=similarity,
            levenshtein_score=similarity,
            structural_score=similarity,
            overall_score=similarity,
            normalized_length1=size,
            normalized_length2=size,
            variations=VariationAnalysis(),
            type_compatibility=TypeCompatibility(all_variations_type_safe=can_refactor),
            has_control_flow_differences=False,
        )
        return SimilarityPair(seq1=seq1, seq2=seq2, similarity=result)
    return _make
