"""
Shared types and models for duplicate code detection.
"""
from typing import List, Dict, Any, Optional, Tuple, Mapping
from dataclasses import dataclass, field
from enum import Enum


CONTROL_FLOW_KINDS = frozenset({
    'if', 'while', 'for', 'foreach', 'do', 'switch', 'try',
    'synchronized', 'break', 'continue', 'return', 'throw', 'yield',
})


class SlotKind(Enum):
    """Kinds of parameterizable sub-expressions"""
    LITERAL = "literal"
    IDENTIFIER = "identifier"
    TYPE = "type"
    OTHER = "other"


class VariationType(Enum):
    """Types of differences between aligned duplicates"""
    LITERAL = "literal"
    IDENTIFIER = "identifier"
    CONTROL_FLOW = "control_flow"
    TYPE = "type"


class RefactoringStrategy(Enum):
    """Consolidation strategies for a duplicate cluster"""
    EXTRACT_METHOD = "extract_method"
    UTILITY_CLASS = "utility_class"
    MANUAL_REVIEW = "manual_review"


class ConfidenceLevel(Enum):
    """Coarse confidence buckets, ordered from weakest to strongest"""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    def lowered(self) -> "ConfidenceLevel":
        if self is ConfidenceLevel.HIGH:
            return ConfidenceLevel.MEDIUM
        return ConfidenceLevel.LOW


@dataclass(frozen=True)
class SourceRange:
    """Location of a code fragment"""
    start_line: int
    end_line: int
    start_column: int = 1
    end_column: int = 1

    def overlaps(self, other: "SourceRange") -> bool:
        return not (self.end_line < other.start_line or other.end_line < self.start_line)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "start_line": self.start_line,
            "end_line": self.end_line,
            "start_column": self.start_column,
            "end_column": self.end_column
        }


@dataclass(frozen=True)
class ExpressionSlot:
    """A sub-expression of a statement that may become a parameter"""
    kind: SlotKind
    text: str


@dataclass(frozen=True)
class Statement:
    """
    One statement as supplied by the source front-end.

    ``shape`` is the coarse shape token used for alignment; ``tree_shape``
    additionally encodes nested block structure.
    """
    shape: str
    kind: str
    text: str = ""
    tree_shape: Optional[str] = None
    slots: Tuple[ExpressionSlot, ...] = ()

    @property
    def fine_shape(self) -> str:
        return self.tree_shape if self.tree_shape is not None else self.shape

    @property
    def is_control_flow(self) -> bool:
        return self.kind in CONTROL_FLOW_KINDS


@dataclass(frozen=True)
class StatementSequence:
    """Consecutive statements within one method body"""
    statements: Tuple[Statement, ...]
    range: SourceRange
    source_file: str
    containing_method: Optional[str] = None
    containing_class: Optional[str] = None
    type_hints: Mapping[str, str] = field(default_factory=dict, compare=False, hash=False)

    @property
    def key(self) -> Tuple[str, int, int, int, int]:
        """Identity of the sequence: file plus source range"""
        return (self.source_file, self.range.start_line, self.range.end_line,
                self.range.start_column, self.range.end_column)

    @property
    def sort_key(self) -> Tuple[int, str, int]:
        return (self.range.start_line, self.source_file, self.range.start_column)

    @property
    def shapes(self) -> List[str]:
        return [statement.shape for statement in self.statements]

    @property
    def is_malformed(self) -> bool:
        return not self.statements or self.range.end_line < self.range.start_line

    @property
    def class_key(self) -> str:
        return self.containing_class or self.source_file

    def __len__(self) -> int:
        return len(self.statements)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source_file": self.source_file,
            "range": self.range.to_dict(),
            "containing_method": self.containing_method,
            "containing_class": self.containing_class,
            "statement_count": len(self.statements),
            "statements": [statement.text for statement in self.statements]
        }


@dataclass(frozen=True)
class Alignment:
    """Position pairs produced by the LCS backtrace"""
    matches: Tuple[Tuple[int, int], ...]
    substitutions: Tuple[Tuple[int, int], ...] = ()
    unaligned1: Tuple[int, ...] = ()
    unaligned2: Tuple[int, ...] = ()
    fine_matches: int = 0

    @property
    def aligned(self) -> Tuple[Tuple[int, int], ...]:
        return tuple(sorted(self.matches + self.substitutions))

    def mirrored(self) -> "Alignment":
        """The same alignment seen from the other sequence"""
        return Alignment(
            matches=tuple((j, i) for i, j in self.matches),
            substitutions=tuple((j, i) for i, j in self.substitutions),
            unaligned1=self.unaligned2,
            unaligned2=self.unaligned1,
            fine_matches=self.fine_matches
        )


@dataclass(frozen=True)
class Variation:
    """A typed difference at aligned positions"""
    variation_type: VariationType
    index1: int
    index2: int
    value1: str
    value2: str
    inferred_type: Optional[str] = None
    slot: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "variation_type": self.variation_type.value,
            "index1": self.index1,
            "index2": self.index2,
            "value1": self.value1,
            "value2": self.value2,
            "inferred_type": self.inferred_type,
            "slot": self.slot
        }


@dataclass(frozen=True)
class VariationAnalysis:
    """Ordered variations between two sequences"""
    variations: Tuple[Variation, ...] = ()
    has_structural_mismatch: bool = False

    def __post_init__(self):
        # Accept any iterable but always store a tuple
        object.__setattr__(self, 'variations', tuple(self.variations))

    def count(self, variation_type: VariationType) -> int:
        return sum(1 for v in self.variations if v.variation_type == variation_type)

    @property
    def has_control_flow_variations(self) -> bool:
        return self.count(VariationType.CONTROL_FLOW) > 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "variations": [v.to_dict() for v in self.variations],
            "has_structural_mismatch": self.has_structural_mismatch,
            "literal_count": self.count(VariationType.LITERAL),
            "identifier_count": self.count(VariationType.IDENTIFIER),
            "type_count": self.count(VariationType.TYPE),
            "control_flow_count": self.count(VariationType.CONTROL_FLOW)
        }


@dataclass(frozen=True)
class TypeCompatibility:
    """Result of unifying variation types"""
    all_variations_type_safe: bool
    parameter_types: Dict[int, str] = field(default_factory=dict, hash=False)
    warnings: Tuple[str, ...] = ()
    incompatibilities: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "all_variations_type_safe": self.all_variations_type_safe,
            "parameter_types": {str(k): v for k, v in self.parameter_types.items()},
            "warnings": list(self.warnings),
            "incompatibilities": list(self.incompatibilities)
        }


@dataclass(frozen=True)
class SimilarityResult:
    """Similarity scores between two sequences"""
    lcs_score: float
    levenshtein_score: float
    structural_score: float
    overall_score: float
    normalized_length1: int
    normalized_length2: int
    variations: VariationAnalysis
    type_compatibility: TypeCompatibility
    has_control_flow_differences: bool = False

    @property
    def can_refactor(self) -> bool:
        return self.type_compatibility.all_variations_type_safe and not self.has_control_flow_differences

    def to_dict(self) -> Dict[str, Any]:
        return {
            "lcs_score": self.lcs_score,
            "levenshtein_score": self.levenshtein_score,
            "structural_score": self.structural_score,
            "overall_score": self.overall_score,
            "normalized_length1": self.normalized_length1,
            "normalized_length2": self.normalized_length2,
            "variations": self.variations.to_dict(),
            "type_compatibility": self.type_compatibility.to_dict(),
            "has_control_flow_differences": self.has_control_flow_differences,
            "can_refactor": self.can_refactor
        }


@dataclass(frozen=True)
class SimilarityPair:
    """Two similar sequences and their similarity"""
    seq1: StatementSequence
    seq2: StatementSequence
    similarity: SimilarityResult

    def to_dict(self) -> Dict[str, Any]:
        return {
            "seq1": self.seq1.to_dict(),
            "seq2": self.seq2.to_dict(),
            "similarity": self.similarity.to_dict()
        }


@dataclass(frozen=True)
class ClusterRecommendation:
    """Consolidation strategy for a cluster"""
    strategy: RefactoringStrategy
    confidence: ConfidenceLevel
    confidence_score: float
    suggested_method_name: Optional[str] = None
    reasons: Tuple[str, ...] = ()

    @property
    def is_high_confidence(self) -> bool:
        return self.confidence == ConfidenceLevel.HIGH

    def format_confidence(self) -> str:
        return f"{self.confidence.name} ({self.confidence_score * 100:.0f}%)"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "strategy": self.strategy.value,
            "confidence": self.confidence.value,
            "confidence_score": self.confidence_score,
            "suggested_method_name": self.suggested_method_name,
            "reasons": list(self.reasons)
        }


@dataclass(frozen=True)
class DuplicateCluster:
    """Connected group of duplicate sequences"""
    primary: StatementSequence
    duplicates: Tuple[SimilarityPair, ...]
    estimated_loc_reduction: int
    recommendation: Optional[ClusterRecommendation] = None

    def __post_init__(self):
        object.__setattr__(self, 'duplicates', tuple(self.duplicates))

    @property
    def sequences(self) -> List[StatementSequence]:
        """Distinct member sequences, primary first then by position"""
        members = {}
        for pair in self.duplicates:
            members.setdefault(pair.seq1.key, pair.seq1)
            members.setdefault(pair.seq2.key, pair.seq2)
        return sorted(members.values(), key=lambda s: s.sort_key)

    @property
    def occurrence_count(self) -> int:
        return len(self.sequences)

    @property
    def average_similarity(self) -> float:
        if not self.duplicates:
            return 0.0
        return sum(p.similarity.overall_score for p in self.duplicates) / len(self.duplicates)

    def format_summary(self) -> str:
        return (f"{self.occurrence_count} occurrences of {len(self.primary)} statements "
                f"starting at {self.primary.source_file}:{self.primary.range.start_line}, "
                f"avg similarity {self.average_similarity * 100:.0f}%, "
                f"~{self.estimated_loc_reduction} LOC reducible")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "primary": self.primary.to_dict(),
            "duplicates": [pair.to_dict() for pair in self.duplicates],
            "occurrence_count": self.occurrence_count,
            "estimated_loc_reduction": self.estimated_loc_reduction,
            "average_similarity": self.average_similarity,
            "recommendation": self.recommendation.to_dict() if self.recommendation else None
        }
