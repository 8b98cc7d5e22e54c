#!/usr/bin/env python3
"""
Emission nodes.

The synthesizer and the emitter describe the output unit as a tree of these immutable
nodes; a target's templates are the only place where they become text. Signatures are kept
structured (return type, name, parameters, qualifiers) so every target shares the same
synthesis and differs only in how it renders.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Tuple


@dataclass(frozen=True)
class Param:
    type_spelling: str
    name: str


@dataclass(frozen=True)
class Signature:
    """
    `return_spelling` is None for constructors and destructors.
    `qualifiers` follows the parameter list ('const', 'const &', '&&').
    """
    name: str
    params: Tuple[Param, ...] = ()
    return_spelling: Optional[str] = None
    qualifiers: str = ""


@dataclass(frozen=True)
class ForwardDecl:
    class_name: str


@dataclass(frozen=True)
class MemberDecl:
    """
    A declaration inside a class block (or the global factory prototype).
    `trailer` is emitted after the qualifiers, e.g. '= delete'.
    """
    signature: Signature
    specifiers: Tuple[str, ...] = ("inline",)
    trailer: str = ""


@dataclass(frozen=True)
class MethodDef:
    """
    An out-of-line definition. `owner` is the class name for members, None for free
    functions. An empty body with initializers renders as a one-line constructor.
    """
    signature: Signature
    owner: Optional[str] = None
    initializers: Tuple[str, ...] = ()
    body: Tuple[str, ...] = ()
    specifiers: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ClassBlock:
    """
    Full declaration of one wrapper class, preceded by its global factory prototype.
    """
    class_name: str
    factory: MemberDecl
    fields: Tuple[str, ...]
    private: Tuple[MemberDecl, ...]
    public: Tuple[MemberDecl, ...]


@dataclass(frozen=True)
class ClassDefinitions:
    class_name: str
    definitions: Tuple[MethodDef, ...]


@dataclass(frozen=True)
class TriboolBlock:
    """
    Fixed ternary boolean preamble. `constants` maps FALSE/TRUE/ERROR to the library's
    enumerators; `operators` is tribool.OPERATORS.
    """
    class_name: str
    native_type: str
    assert_macro: str
    stringize_macro: str
    constants: Tuple[Tuple[str, str], ...]
    operators: Tuple[object, ...]


@dataclass(frozen=True)
class DimKindBlock:
    enum_name: str
    values: Tuple[Tuple[str, str], ...]


@dataclass(frozen=True)
class OutputUnit:
    guard: str
    includes: Tuple[str, ...]
    namespace: str
    forward_decls: Tuple[ForwardDecl, ...]
    tribool: TriboolBlock
    dim_kind: DimKindBlock
    class_blocks: Tuple[ClassBlock, ...] = field(default_factory=tuple)
    class_definitions: Tuple[ClassDefinitions, ...] = field(default_factory=tuple)


__all__ = [
    "Param",
    "Signature",
    "ForwardDecl",
    "MemberDecl",
    "MethodDef",
    "ClassBlock",
    "ClassDefinitions",
    "TriboolBlock",
    "DimKindBlock",
    "OutputUnit",
]
