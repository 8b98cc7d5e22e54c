#!/usr/bin/env python3
"""
Type mapping for the C++ handle wrappers.

This module classifies the C types found in function declarations and computes how each
one appears in the wrapper API. It provides:

- The closed TypeRef vocabulary: HANDLE(class) | INTEGER | DIM_KIND | TRIBOOL | UNSUPPORTED
- Recognition of the library context type (a session-wide handle, never wrapped)
- Exposed spellings for parameters and returns, and the expression templates that turn a
  wrapper-side value into the native argument (and a native result into the wrapper value)

Typical usage:

    mapper = TypeMapper.from_model(model, library)
    ref = mapper.classify(param.c_type)
    if ref.kind is TypeKind.UNSUPPORTED:
        ...  # the declaration is filtered out

Handle ownership (which accessor to call on a wrapper) is decided in ownership.py; this
module only says *that* a value is a handle and which wrapper class it maps to.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Dict, Iterable, Optional

from .models import ClassModel, CType, LibraryConfig
from .utils import to_class_name


# --------------------------
# Helpers
# --------------------------

_INTEGRAL_TYPES = frozenset({
    "bool",
    "_Bool",
    "char",
    "signed char",
    "unsigned char",
    "short",
    "short int",
    "unsigned short",
    "unsigned short int",
    "int",
    "signed",
    "signed int",
    "unsigned",
    "unsigned int",
    "long",
    "long int",
    "unsigned long",
    "unsigned long int",
    "long long",
    "long long int",
    "unsigned long long",
    "unsigned long long int",
    "size_t",
    "ptrdiff_t",
    "intptr_t",
    "uintptr_t",
    "int8_t",
    "uint8_t",
    "int16_t",
    "uint16_t",
    "int32_t",
    "uint32_t",
    "int64_t",
    "uint64_t",
})


def _is_integral(t: CType) -> bool:
    return not t.is_pointer and t.base_name in _INTEGRAL_TYPES


def _normalize_spelling(spelling: str) -> str:
    """
    Collapse whitespace and tidy pointer spacing: 'unsigned   int' -> 'unsigned int'.
    """
    s = " ".join(spelling.split())
    return s.replace(" *", "*").replace("*", " *").strip()


# --------------------------
# Classification model
# --------------------------

class TypeKind(Enum):
    HANDLE = auto()
    INTEGER = auto()
    DIM_KIND = auto()
    TRIBOOL = auto()
    UNSUPPORTED = auto()


@dataclass(frozen=True)
class TypeRef:
    """
    Classified type. `class_name` is the C handle type name for HANDLE, else None.
    """
    kind: TypeKind
    class_name: Optional[str] = None

    @property
    def is_handle(self) -> bool:
        return self.kind is TypeKind.HANDLE

    @property
    def is_supported(self) -> bool:
        return self.kind is not TypeKind.UNSUPPORTED


UNSUPPORTED = TypeRef(TypeKind.UNSUPPORTED)
INTEGER = TypeRef(TypeKind.INTEGER)
DIM_KIND = TypeRef(TypeKind.DIM_KIND)
TRIBOOL = TypeRef(TypeKind.TRIBOOL)

TRIBOOL_CLASS = "Tribool"
DIM_KIND_CLASS = "DimType"


@dataclass(frozen=True)
class MappedType:
    """
    How one value crosses the wrapper boundary.

    - exposed_spelling: type in the wrapper signature ('const BasicSet &', 'DimType', 'int')
    - to_native_expr: argument expression template with a '{var}' placeholder; handles are
      left to the ownership rule and carry None here
    - from_native_expr: result expression template with an '{expr}' placeholder
    """
    ref: TypeRef
    exposed_spelling: str
    to_native_expr: Optional[str] = None
    from_native_expr: Optional[str] = None


# --------------------------
# Mapper
# --------------------------

class TypeMapper:
    """
    Classifies C types against the set of known handle classes.

    Build with:
      - from_model(model, library): every class in the model is a known handle type
      - or TypeMapper(known_classes, library)
    """

    def __init__(self, known_classes: Iterable[str], library: Optional[LibraryConfig] = None) -> None:
        self.library = library or LibraryConfig()
        self.known_classes = frozenset(known_classes)

    @staticmethod
    def from_model(model: ClassModel, library: Optional[LibraryConfig] = None) -> "TypeMapper":
        return TypeMapper(model.names, library)

    # ---- Public API ----

    def class_name(self, c_name: str) -> str:
        return to_class_name(c_name, self.library.prefix)

    def is_context_type(self, t: CType) -> bool:
        return t.is_pointer and t.base_name == self.library.context_type

    def classify(self, t: CType) -> TypeRef:
        base = t.base_name
        if t.is_pointer:
            if t.spelling.count("*") == 1 and base in self.known_classes:
                return TypeRef(TypeKind.HANDLE, base)
            return UNSUPPORTED
        if base == self.library.dim_type:
            return DIM_KIND
        if base == self.library.bool_type:
            return TRIBOOL
        if _is_integral(t) or t.is_enum or t.is_integer:
            return INTEGER
        return UNSUPPORTED

    def map_parameter(self, t: CType) -> MappedType:
        ref = self.classify(t)
        native = _normalize_spelling(t.spelling)
        if ref.kind is TypeKind.HANDLE:
            return MappedType(ref, f"const {self.class_name(ref.class_name)} &")
        if ref.kind is TypeKind.DIM_KIND:
            return MappedType(
                ref,
                DIM_KIND_CLASS,
                to_native_expr=f"static_cast<{self.library.dim_type}>({{var}})",
            )
        # Tri-state arguments keep their native enumeration type; Tribool is a result type.
        if ref.kind in (TypeKind.INTEGER, TypeKind.TRIBOOL):
            return MappedType(ref, native, to_native_expr="{var}")
        return MappedType(ref, "<unsupported>")

    def map_return(self, t: CType) -> MappedType:
        ref = self.classify(t)
        native = _normalize_spelling(t.spelling)
        if ref.kind is TypeKind.HANDLE:
            # Wrapping in the global factory is the ownership layer's job.
            return MappedType(ref, self.class_name(ref.class_name))
        if ref.kind is TypeKind.DIM_KIND:
            return MappedType(ref, DIM_KIND_CLASS, from_native_expr=f"static_cast<{DIM_KIND_CLASS}>({{expr}})")
        if ref.kind is TypeKind.TRIBOOL:
            return MappedType(ref, TRIBOOL_CLASS, from_native_expr=f"{TRIBOOL_CLASS}({{expr}})")
        if ref.kind is TypeKind.INTEGER:
            return MappedType(ref, native, from_native_expr="{expr}")
        return MappedType(ref, "<unsupported>")


def build_known_class_map(model: ClassModel, library: LibraryConfig) -> Dict[str, str]:
    """
    Map C handle type name -> wrapper class name, for diagnostics and the manifest.
    """
    return {name: to_class_name(name, library.prefix) for name in model.names}


__all__ = [
    "TypeKind",
    "TypeRef",
    "MappedType",
    "TypeMapper",
    "UNSUPPORTED",
    "INTEGER",
    "DIM_KIND",
    "TRIBOOL",
    "TRIBOOL_CLASS",
    "DIM_KIND_CLASS",
    "build_known_class_map",
]
