"""
Variation tracker: enumerates the positional differences between two aligned sequences
"""

from itertools import zip_longest
from typing import List, Optional

from .types import (
    Alignment, ExpressionSlot, SlotKind, Statement, StatementSequence,
    Variation, VariationAnalysis, VariationType
)
from .type_analyzer import infer_literal_type


class VariationTracker:
    """Extracts typed variations from an LCS alignment"""

    _SLOT_VARIATIONS = {
        SlotKind.LITERAL: VariationType.LITERAL,
        SlotKind.IDENTIFIER: VariationType.IDENTIFIER,
        SlotKind.TYPE: VariationType.TYPE,
    }

    def extract_variations(self, seq1: StatementSequence, seq2: StatementSequence,
                           alignment: Alignment) -> VariationAnalysis:
        """
        Extract variations between two sequences

        Args:
            seq1: First sequence
            seq2: Second sequence
            alignment: Alignment computed by the similarity analyzer

        Returns:
            VariationAnalysis ordered by statement position then slot
        """
        variations: List[Variation] = []
        mismatch = bool(alignment.unaligned1 or alignment.unaligned2)

        for index1, index2 in alignment.aligned:
            statement1 = seq1.statements[index1]
            statement2 = seq2.statements[index2]

            if self._differs_in_control_flow(statement1, statement2):
                variations.append(Variation(
                    variation_type=VariationType.CONTROL_FLOW,
                    index1=index1,
                    index2=index2,
                    value1=statement1.kind,
                    value2=statement2.kind
                ))
                continue

            if statement1.shape != statement2.shape:
                # A gap substitution that cannot be expressed as a parameter
                mismatch = True
                continue

            if len(statement1.slots) != len(statement2.slots):
                mismatch = True

            variations.extend(self._slot_variations(index1, index2, statement1, statement2))

        return VariationAnalysis(variations=variations, has_structural_mismatch=mismatch)

    def empty(self) -> VariationAnalysis:
        return VariationAnalysis()

    def _differs_in_control_flow(self, statement1: Statement, statement2: Statement) -> bool:
        return (statement1.is_control_flow or statement2.is_control_flow) and statement1.kind != statement2.kind

    def _slot_variations(self, index1: int, index2: int,
                         statement1: Statement, statement2: Statement) -> List[Variation]:
        variations = []
        pairs = zip_longest(statement1.slots, statement2.slots)
        for slot, (slot1, slot2) in enumerate(pairs):
            if slot1 is None or slot2 is None or slot1.text == slot2.text:
                continue

            variation_type = self._classify(slot1, slot2)
            variations.append(Variation(
                variation_type=variation_type,
                index1=index1,
                index2=index2,
                value1=slot1.text,
                value2=slot2.text,
                inferred_type=self._infer_type(variation_type, slot1, slot2),
                slot=slot
            ))
        return variations

    def _classify(self, slot1: ExpressionSlot, slot2: ExpressionSlot) -> VariationType:
        if slot1.kind == slot2.kind and slot1.kind in self._SLOT_VARIATIONS:
            return self._SLOT_VARIATIONS[slot1.kind]
        # Mixed kinds are passed as expressions of unknown type
        return VariationType.IDENTIFIER

    def _infer_type(self, variation_type: VariationType, slot1: ExpressionSlot,
                    slot2: ExpressionSlot) -> Optional[str]:
        if variation_type != VariationType.LITERAL:
            return None
        type1 = infer_literal_type(slot1.text)
        if type1 is not None and type1 == infer_literal_type(slot2.text):
            return type1
        return None
