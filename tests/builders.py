"""
Statement constructors shared by the tests.
"""
from core.duplication.types import ExpressionSlot, SlotKind, Statement


def assign(target: str, value: str, kind: SlotKind = SlotKind.LITERAL) -> Statement:
    """Assignment statement whose value is a parameterizable slot."""
    return Statement(
        shape="assign:local",
        kind="expression",
        text=f"{target} = {value};",
        slots=(ExpressionSlot(SlotKind.IDENTIFIER, target), ExpressionSlot(kind, value)),
    )


def call(name: str, *args: str) -> Statement:
    """Method call statement with literal arguments."""
    return Statement(
        shape=f"method-call:{name}-{len(args)}",
        kind="expression",
        text=f"{name}({', '.join(args)});",
        slots=tuple(ExpressionSlot(SlotKind.LITERAL, a) for a in args),
    )


def control(kind: str, tree_shape: str = None) -> Statement:
    """Control-flow statement such as an if or a while loop."""
    return Statement(shape=f"{kind}-block", kind=kind, text=f"{kind} (...) {{ }}", tree_shape=tree_shape)
