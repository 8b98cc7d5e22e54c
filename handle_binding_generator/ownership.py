#!/usr/bin/env python3
"""
Ownership rules for handle arguments and results.

A wrapper owns exactly one handle. When a call borrows a handle the wrapper lends its own
pointer (get()); when a call consumes a handle the wrapper hands over a duplicate (copy())
so that it stays valid itself. Handles coming back from the library are always given to
the caller and are adopted by a new wrapper through the global factory, manage().

Ownership is read from the declaration annotations; nothing here infers it.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from .models import FunctionInfo, ModelError, Ownership

FACTORY_NAME = "manage"


class Accessor(Enum):
    """
    Wrapper member used to obtain the raw handle for a call.
    """
    COPY = "copy"
    GET = "get"


def parameter_ownership(fn: FunctionInfo, index: int) -> Ownership:
    if not 0 <= index < len(fn.parameters):
        raise ModelError(f"no parameter at position {index}", function_name=fn.qualified_name)
    return fn.parameters[index].ownership


def accessor_for(ownership: Ownership) -> Accessor:
    if ownership is Ownership.CONSUME:
        return Accessor.COPY
    return Accessor.GET


def handle_argument(fn: FunctionInfo, index: int, arg_name: Optional[str] = None) -> str:
    """
    Expression passing the handle for parameter `index` of `fn`.

    Without `arg_name` the argument is the receiver and the accessor is called on `this`
    ('copy()'); otherwise it is called on the named wrapper argument ('arg.copy()').
    """
    accessor = accessor_for(parameter_ownership(fn, index))
    if arg_name is None:
        return f"{accessor.value}()"
    return f"{arg_name}.{accessor.value}()"


def wrap_result(expr: str) -> str:
    """
    Adopt a returned handle into a new wrapper.
    """
    return f"{FACTORY_NAME}({expr})"


__all__ = [
    "FACTORY_NAME",
    "Accessor",
    "parameter_ownership",
    "accessor_for",
    "handle_argument",
    "wrap_result",
]
