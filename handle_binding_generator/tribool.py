#!/usr/bin/env python3
"""
Three-valued logic (false/true/error) for results that may be undetermined.

The library reports predicates as a tri-state: a call that failed upstream answers
"error" instead of guessing a boolean. This module holds:

- Tribool, a Python value type with the exact operator algebra of the emitted C++ class
- OPERATORS, the single operator table the emitted C++ operator overloads are generated
  from, so the Python model and the generated code cannot drift apart

Rules:
- ==, !=, &, |, ^ and ! propagate an error operand.
- Short-circuit && answers false as soon as one operand is a no-error false, and
  short-circuit || answers true as soon as one operand is a no-error true; otherwise they
  fall back to & and |.
- A plain bool is promoted to true/false before any binary operator.
- Converting an error to bool is an assertion failure.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Tuple, Union


class TriState(Enum):
    FALSE = 0
    TRUE = 1
    ERROR = -1

    @property
    def constant_suffix(self) -> str:
        return self.name.lower()


@dataclass(frozen=True)
class OperatorSpec:
    """
    One binary operator of the tri-state algebra.

    - symbol: C++ operator token
    - combine: result on two no-error operands (plain booleans)
    - cpp_combine: the same rule as a C++ expression over lhs/rhs
    - shortcut: a no-error state that decides the result on its own, whatever the other
      operand (only for the short-circuit operators)
    """
    symbol: str
    combine: Callable[[bool, bool], bool]
    cpp_combine: str
    shortcut: Optional[TriState] = None

    @property
    def cpp_shortcut_test(self) -> Optional[str]:
        if self.shortcut is TriState.TRUE:
            return "lhs.isTrueNoError() || rhs.isTrueNoError()"
        if self.shortcut is TriState.FALSE:
            return "lhs.isFalseNoError() || rhs.isFalseNoError()"
        return None

    @property
    def cpp_shortcut_value(self) -> Optional[str]:
        if self.shortcut is None:
            return None
        return "true" if self.shortcut is TriState.TRUE else "false"


OPERATORS: Tuple[OperatorSpec, ...] = (
    OperatorSpec("==", lambda a, b: a == b, "lhs.isTrueNoError() == rhs.isTrueNoError()"),
    OperatorSpec("!=", lambda a, b: a != b, "lhs.isTrueNoError() != rhs.isTrueNoError()"),
    OperatorSpec("&", lambda a, b: a and b, "lhs.isTrueNoError() && rhs.isTrueNoError()"),
    OperatorSpec("|", lambda a, b: a or b, "lhs.isTrueNoError() || rhs.isTrueNoError()"),
    OperatorSpec("^", lambda a, b: a != b, "lhs.isTrueNoError() ^ rhs.isTrueNoError()"),
    OperatorSpec("&&", lambda a, b: a and b, "lhs.isTrueNoError() && rhs.isTrueNoError()", TriState.FALSE),
    OperatorSpec("||", lambda a, b: a or b, "lhs.isTrueNoError() || rhs.isTrueNoError()", TriState.TRUE),
)

_BY_SYMBOL = {op.symbol: op for op in OPERATORS}

Operand = Union["Tribool", bool, TriState]


class Tribool:
    """
    Tri-state boolean value. A default-constructed Tribool is in the error state.

    Comparison operators return Tribool, so Tribool values are not hashable; compare
    states with `.state` when a plain answer is needed.
    """

    __slots__ = ("state",)

    def __init__(self, value: Optional[Operand] = None) -> None:
        if value is None:
            state = TriState.ERROR
        elif isinstance(value, Tribool):
            state = value.state
        elif isinstance(value, TriState):
            state = value
        elif isinstance(value, bool):
            state = TriState.TRUE if value else TriState.FALSE
        else:
            raise TypeError(f"cannot make a Tribool from {type(value).__name__}")
        object.__setattr__(self, "state", state)

    def __setattr__(self, name, value):
        raise AttributeError("Tribool is immutable")

    # ---- Explicit queries ----

    def is_error(self) -> bool:
        return self.state is TriState.ERROR

    def is_no_error(self) -> bool:
        return self.state is not TriState.ERROR

    def is_false_or_error(self) -> bool:
        return self.state is not TriState.TRUE

    def is_true_or_error(self) -> bool:
        return self.state is not TriState.FALSE

    def is_false_no_error(self) -> bool:
        return self.state is TriState.FALSE

    def is_true_no_error(self) -> bool:
        return self.state is TriState.TRUE

    def __bool__(self) -> bool:
        if self.is_error():
            raise AssertionError("Unhandled error state: a Tribool in the error state has no boolean value")
        return self.state is TriState.TRUE

    # ---- Operators ----

    def __eq__(self, other):  # type: ignore[override]
        return apply_operator("==", self, other)

    def __ne__(self, other):  # type: ignore[override]
        return apply_operator("!=", self, other)

    __hash__ = None  # type: ignore[assignment]

    def __and__(self, other: Operand) -> "Tribool":
        return apply_operator("&", self, other)

    def __rand__(self, other: Operand) -> "Tribool":
        return apply_operator("&", other, self)

    def __or__(self, other: Operand) -> "Tribool":
        return apply_operator("|", self, other)

    def __ror__(self, other: Operand) -> "Tribool":
        return apply_operator("|", other, self)

    def __xor__(self, other: Operand) -> "Tribool":
        return apply_operator("^", self, other)

    def __rxor__(self, other: Operand) -> "Tribool":
        return apply_operator("^", other, self)

    def __invert__(self) -> "Tribool":
        return logical_not(self)

    def logical_and(self, other: Operand) -> "Tribool":
        return apply_operator("&&", self, other)

    def logical_or(self, other: Operand) -> "Tribool":
        return apply_operator("||", self, other)

    def __repr__(self) -> str:
        return f"Tribool({self.state.name})"


FALSE = Tribool(TriState.FALSE)
TRUE = Tribool(TriState.TRUE)
ERROR = Tribool(TriState.ERROR)


def _promote(value: Operand) -> Tribool:
    if isinstance(value, Tribool):
        return value
    return Tribool(value)


def apply_operator(symbol: str, lhs: Operand, rhs: Operand) -> Tribool:
    """
    Evaluate binary operator `symbol` on two operands, promoting plain booleans first.
    """
    try:
        op = _BY_SYMBOL[symbol]
    except KeyError:
        raise ValueError(f"unknown tri-state operator {symbol!r}") from None
    left, right = _promote(lhs), _promote(rhs)
    if op.shortcut is not None and op.shortcut in (left.state, right.state):
        return Tribool(op.shortcut)
    if left.is_error() or right.is_error():
        return ERROR
    return Tribool(op.combine(left.is_true_no_error(), right.is_true_no_error()))


def logical_and(lhs: Operand, rhs: Operand) -> Tribool:
    return apply_operator("&&", lhs, rhs)


def logical_or(lhs: Operand, rhs: Operand) -> Tribool:
    return apply_operator("||", lhs, rhs)


def logical_not(value: Operand) -> Tribool:
    v = _promote(value)
    if v.is_error():
        return ERROR
    return Tribool(not v.is_true_no_error())


__all__ = [
    "TriState",
    "OperatorSpec",
    "OPERATORS",
    "Tribool",
    "FALSE",
    "TRUE",
    "ERROR",
    "apply_operator",
    "logical_and",
    "logical_or",
    "logical_not",
]
