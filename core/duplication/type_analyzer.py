"""
Type compatibility analysis for variations between duplicate sequences
Decides whether the discovered differences can become typed method parameters
"""

import re
from typing import Dict, List, Mapping, Optional

from .types import TypeCompatibility, Variation, VariationAnalysis, VariationType
from utils.logger import get_logger

logger = get_logger(__name__)

TYPE_INTEGER = "integer"
TYPE_FLOATING = "floating"
TYPE_BOOLEAN = "boolean"
TYPE_STRING = "string"
UNIVERSAL_TYPE = "object"

CONTROL_FLOW_WARNING = "Control flow"

_INTEGER_RE = re.compile(r'^[-+]?(0[xX][0-9a-fA-F_]+|0[bB][01_]+|\d[\d_]*)[lL]?$')
_FLOAT_RE = re.compile(r'^[-+]?(\d[\d_]*\.\d*|\.\d+|\d[\d_]*)([eE][-+]?\d+)?[fFdD]?$')
_STRING_RE = re.compile(r'^([rRbBuUfF]{0,2})("""[\s\S]*"""|\'\'\'[\s\S]*\'\'\'|"[^"]*"|\'[^\']*\')$')
_BOOLEANS = {"true", "false"}


def infer_literal_type(text: str) -> Optional[str]:
    """
    Infer a primitive type from the lexical shape of a literal

    Args:
        text: Literal source text

    Returns:
        One of the primitive type names, or None when the shape is not recognised
    """
    literal = text.strip()
    if not literal:
        return None
    if literal.lower() in _BOOLEANS:
        return TYPE_BOOLEAN
    if _STRING_RE.match(literal):
        return TYPE_STRING
    if _INTEGER_RE.match(literal):
        return TYPE_INTEGER
    if _FLOAT_RE.match(literal) and any(c.isdigit() for c in literal):
        return TYPE_FLOATING
    return None


class TypeAnalyzer:
    """Unifies the types of variations pairwise"""

    def analyze_type_compatibility(self, analysis: VariationAnalysis,
                                   type_hints: Optional[Mapping[str, str]] = None,
                                   other_type_hints: Optional[Mapping[str, str]] = None) -> TypeCompatibility:
        """
        Analyze whether every variation can become a typed parameter

        Args:
            analysis: Variations between two sequences
            type_hints: Declared types of identifiers on the first side
            other_type_hints: Declared types on the second side (defaults to type_hints)

        Returns:
            TypeCompatibility with the unified type of each variation
        """
        hints1 = type_hints or {}
        hints2 = other_type_hints if other_type_hints is not None else hints1

        parameter_types: Dict[int, str] = {}
        warnings: List[str] = []
        incompatibilities: List[str] = []
        type_safe = True

        for ordinal, variation in enumerate(analysis.variations):
            if variation.variation_type == VariationType.CONTROL_FLOW:
                type_safe = False
                if CONTROL_FLOW_WARNING not in warnings:
                    warnings.append(CONTROL_FLOW_WARNING)
                incompatibilities.append(
                    f"Control flow differs at statements {variation.index1}/{variation.index2}: "
                    f"{variation.value1} vs {variation.value2}"
                )
                continue

            if variation.variation_type == VariationType.LITERAL:
                unified = self._unify_literal(variation)
            else:
                unified = self._unify_declared(variation, hints1, hints2)

            if unified is None:
                unified = UNIVERSAL_TYPE
                warnings.append(
                    f"Could not unify types of '{variation.value1}' and '{variation.value2}'; "
                    f"using {UNIVERSAL_TYPE}"
                )
                logger.debug(f"Falling back to {UNIVERSAL_TYPE} for variation {ordinal}")

            parameter_types[ordinal] = unified

        return TypeCompatibility(
            all_variations_type_safe=type_safe,
            parameter_types=parameter_types,
            warnings=tuple(warnings),
            incompatibilities=tuple(incompatibilities)
        )

    def _unify_literal(self, variation: Variation) -> Optional[str]:
        type1 = infer_literal_type(variation.value1)
        type2 = infer_literal_type(variation.value2)
        if type1 is not None and type1 == type2:
            return type1
        if type1 is None and type2 is None and variation.inferred_type:
            return variation.inferred_type
        return None

    def _unify_declared(self, variation: Variation, hints1: Mapping[str, str],
                        hints2: Mapping[str, str]) -> Optional[str]:
        type1 = hints1.get(variation.value1)
        type2 = hints2.get(variation.value2)
        if type1 is not None and type1 == type2:
            return type1
        if type1 is None and type2 is None and variation.inferred_type:
            return variation.inferred_type
        return None
