from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ComparisonScope(str, Enum):
    """How far apart two sequences may be and still be compared"""
    METHOD = "method"
    CLASS = "class"
    FILE = "file"
    PROJECT = "project"


class SimilarityWeights(BaseModel):
    """Weights of the three component scores in the overall score"""
    model_config = ConfigDict(frozen=True)

    lcs: float = Field(default=1 / 3, ge=0.0, le=1.0)
    levenshtein: float = Field(default=1 / 3, ge=0.0, le=1.0)
    structural: float = Field(default=1 / 3, ge=0.0, le=1.0)

    @model_validator(mode="after")
    def _check_sum(self) -> "SimilarityWeights":
        total = self.lcs + self.levenshtein + self.structural
        if abs(total - 1.0) > 1e-6:
            raise ValueError(f"similarity weights must sum to 1, got {total:.4f}")
        return self

    @classmethod
    def balanced(cls) -> "SimilarityWeights":
        return cls()

    def combine(self, lcs: float, levenshtein: float, structural: float) -> float:
        return self.lcs * lcs + self.levenshtein * levenshtein + self.structural * structural


class DuplicationConfig(BaseModel):
    """Immutable configuration passed through every analysis stage"""
    model_config = ConfigDict(frozen=True)

    min_lines: int = Field(default=5, ge=1)
    threshold: float = Field(default=0.75, ge=0.0, le=1.0)
    weights: SimilarityWeights = Field(default_factory=SimilarityWeights.balanced)
    cross_file_comparison: bool = Field(default=False)
    comparison_scope: ComparisonScope = Field(default=ComparisonScope.FILE)

    # Recommendation settings
    high_confidence: float = Field(default=0.90, ge=0.0, le=1.0)
    medium_confidence: float = Field(default=0.75, ge=0.0, le=1.0)
    call_site_overhead: int = Field(default=1, ge=0)

    # Performance settings
    max_workers: int = Field(default=4, ge=1)
    time_budget_seconds: Optional[float] = Field(default=None, gt=0)

    @model_validator(mode="after")
    def _check_confidence_order(self) -> "DuplicationConfig":
        if self.medium_confidence > self.high_confidence:
            raise ValueError(
                f"medium_confidence ({self.medium_confidence}) must not exceed "
                f"high_confidence ({self.high_confidence})"
            )
        return self

    @property
    def effective_scope(self) -> ComparisonScope:
        if self.cross_file_comparison:
            return ComparisonScope.PROJECT
        return self.comparison_scope

    @classmethod
    def default(cls, **overrides) -> "DuplicationConfig":
        return cls(**overrides)

    @classmethod
    def strict(cls, **overrides) -> "DuplicationConfig":
        return cls(**{"threshold": 0.90, "min_lines": 7, **overrides})

    @classmethod
    def lenient(cls, **overrides) -> "DuplicationConfig":
        return cls(**{"threshold": 0.60, "min_lines": 3, **overrides})

    @classmethod
    def from_preset(cls, preset: str = "default", **overrides) -> "DuplicationConfig":
        """
        Build a configuration from a named preset

        Args:
            preset: One of 'default', 'strict' or 'lenient'
            **overrides: Field values that replace the preset's

        Returns:
            Validated DuplicationConfig
        """
        factories = {
            "default": cls.default,
            "strict": cls.strict,
            "lenient": cls.lenient,
        }
        name = (preset or "default").lower()
        if name not in factories:
            raise ValueError(f"Unknown preset '{preset}', expected one of: default, strict, lenient")
        overrides = {k: v for k, v in overrides.items() if v is not None}
        return factories[name](**overrides)


PRESETS: Dict[str, DuplicationConfig] = {
    "default": DuplicationConfig.default(),
    "strict": DuplicationConfig.strict(),
    "lenient": DuplicationConfig.lenient(),
}


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    allowed_origins: str = Field(default="http://localhost:3000")
    debug: bool = Field(default=False)
    log_level: str = Field(default="INFO")

    # Duplication Settings
    dedup_preset: str = Field(default="default")
    dedup_min_lines: Optional[int] = Field(default=None)
    dedup_threshold: Optional[float] = Field(default=None)
    dedup_cross_file: bool = Field(default=False)

    # Performance Settings
    analysis_timeout_seconds: Optional[float] = Field(default=None)
    max_concurrent_analyses: int = Field(default=4)

    @property
    def allowed_origins_list(self) -> List[str]:
        return [origin.strip() for origin in self.allowed_origins.split(",")]

    def duplication_config(self) -> DuplicationConfig:
        """Build the immutable analysis config; raises ValueError when invalid"""
        return DuplicationConfig.from_preset(
            self.dedup_preset,
            min_lines=self.dedup_min_lines,
            threshold=self.dedup_threshold,
            cross_file_comparison=self.dedup_cross_file,
            max_workers=self.max_concurrent_analyses,
            time_budget_seconds=self.analysis_timeout_seconds,
        )

    def validate(self) -> None:
        errors = []
        if self.log_level.upper() not in ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"):
            errors.append(f"LOG_LEVEL '{self.log_level}' is not a logging level")
        try:
            self.duplication_config()
        except ValueError as e:
            errors.append(str(e))
        if errors:
            raise ValueError(f"Configuration errors: {', '.join(errors)}")


settings = Settings()
