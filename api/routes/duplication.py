"""
Duplicate code detection endpoints for analyzing candidate statement sequences.
"""
from typing import Dict, Any, List, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from core.config import ComparisonScope, DuplicationConfig, PRESETS, settings
from core.duplication.detector import DuplicateCodeDetector
from core.duplication.types import (
    ExpressionSlot, SlotKind, SourceRange, Statement, StatementSequence
)
from utils.logger import get_logger

logger = get_logger(__name__)
router = APIRouter(tags=["duplication"])


class SlotRequest(BaseModel):
    """A parameterizable sub-expression of a statement."""
    kind: SlotKind
    text: str


class StatementRequest(BaseModel):
    """One statement as produced by the source front-end."""
    shape: str
    kind: str
    text: str = ""
    tree_shape: Optional[str] = None
    slots: List[SlotRequest] = Field(default_factory=list)


class SequenceRequest(BaseModel):
    """A window of consecutive statements within one method."""
    statements: List[StatementRequest]
    start_line: int
    end_line: int
    start_column: int = 1
    end_column: int = 1
    containing_method: Optional[str] = None
    containing_class: Optional[str] = None
    type_hints: Dict[str, str] = Field(default_factory=dict)


class FileSequencesRequest(BaseModel):
    """Candidate sequences of one source file."""
    file_path: str
    sequences: List[SequenceRequest]


class AnalysisRequest(BaseModel):
    """Request body for a duplication analysis run."""
    files: List[FileSequencesRequest]
    preset: Optional[str] = None
    min_lines: Optional[int] = None
    threshold: Optional[float] = None
    cross_file_comparison: Optional[bool] = None
    comparison_scope: Optional[ComparisonScope] = None


class PresetResponse(BaseModel):
    """Response model for a configuration preset."""
    name: str
    min_lines: int
    threshold: float


class AnalysisResponse(BaseModel):
    """Response model for a duplication analysis run."""
    files_analyzed: int
    total_duplicates: int
    total_clusters: int
    reports: List[Dict[str, Any]]
    project_report: Optional[Dict[str, Any]]
    failures: Dict[str, str]


def build_sequence(file_path: str, request: SequenceRequest) -> StatementSequence:
    """Convert a request sequence into the immutable analysis model."""
    statements = tuple(
        Statement(
            shape=s.shape,
            kind=s.kind,
            text=s.text,
            tree_shape=s.tree_shape,
            slots=tuple(ExpressionSlot(kind=slot.kind, text=slot.text) for slot in s.slots)
        )
        for s in request.statements
    )
    return StatementSequence(
        statements=statements,
        range=SourceRange(request.start_line, request.end_line, request.start_column, request.end_column),
        source_file=file_path,
        containing_method=request.containing_method,
        containing_class=request.containing_class,
        type_hints=dict(request.type_hints)
    )


def build_config(request: AnalysisRequest) -> DuplicationConfig:
    """Build the run configuration, falling back to the service settings."""
    if request.preset is None and all(
        value is None for value in (request.min_lines, request.threshold,
                                    request.cross_file_comparison, request.comparison_scope)
    ):
        return settings.duplication_config()

    return DuplicationConfig.from_preset(
        request.preset or "default",
        min_lines=request.min_lines,
        threshold=request.threshold,
        cross_file_comparison=request.cross_file_comparison,
        comparison_scope=request.comparison_scope,
        max_workers=settings.max_concurrent_analyses,
        time_budget_seconds=settings.analysis_timeout_seconds,
    )


@router.get("/duplication/presets", response_model=List[PresetResponse])
def get_presets():
    """List the built-in configuration presets."""
    return [
        PresetResponse(name=name, min_lines=config.min_lines, threshold=config.threshold)
        for name, config in PRESETS.items()
    ]


@router.post("/duplication/analyze", response_model=AnalysisResponse)
def analyze_duplication(request: AnalysisRequest):
    """Find, cluster and judge duplicates among the submitted sequences."""
    try:
        config = build_config(request)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))

    sequences_by_file = {
        file.file_path: [build_sequence(file.file_path, seq) for seq in file.sequences]
        for file in request.files
    }

    logger.info(f"Analyzing {len(sequences_by_file)} files with threshold {config.threshold}")
    analysis = DuplicateCodeDetector(config).analyze_project(sequences_by_file)
    return AnalysisResponse(**analysis.to_dict())
