#!/usr/bin/env python3
"""
Data models for the handle binding generator.

This module provides strongly-typed, immutable data structures to describe:
- C types as spelled by the declaration front end (lightweight pointer/const parsing)
- Function parameters and their ownership annotations
- Functions (the library's exported declarations)
- Classes (one per opaque handle type, with constructor and method groups)
- The ordered class model handed to the generator
- Library and generation settings

The models are designed to be consumed by:
- The model loader (to populate instances from the front end's hand-off)
- The classifier, the synthesizer and the emitters
- The manifest writer (via to_dict)

Everything here is frozen: the generator reads the model, it never edits it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Tuple


class ModelError(Exception):
    """
    The input model is inconsistent. Generation cannot continue until it is fixed upstream.
    """

    def __init__(self, message: str, class_name: Optional[str] = None, function_name: Optional[str] = None) -> None:
        where = []
        if class_name:
            where.append(f"class '{class_name}'")
        if function_name:
            where.append(f"function '{function_name}'")
        text = f"{message} ({', '.join(where)})" if where else message
        super().__init__(text)
        self.class_name = class_name
        self.function_name = function_name


# --------------------------
# C type model
# --------------------------

@dataclass(frozen=True)
class CType:
    """
    A C type as spelled in the library headers, e.g. 'isl_set *', 'unsigned int',
    'enum isl_dim_type'.

    `is_enum` is set by the front end for enumeration types; plain enums count as integers
    for the purpose of wrapping. `is_integer` marks typedefs of integral types whose name
    alone says nothing, such as `isl_size`.
    """
    spelling: str
    is_enum: bool = False
    is_integer: bool = False

    @property
    def is_pointer(self) -> bool:
        return "*" in self.spelling

    @property
    def base_name(self) -> str:
        """
        The spelling without pointers, qualifiers and elaborated-type keywords:
          'const struct isl_set *' -> 'isl_set'
        """
        s = self.spelling.replace("*", " ").replace("&", " ")
        tokens = [t for t in s.split() if t not in ("const", "volatile", "struct", "enum", "union", "restrict")]
        return " ".join(tokens)

    def to_dict(self) -> Dict:
        return {"spelling": self.spelling, "is_enum": self.is_enum, "is_integer": self.is_integer}


VOID = CType("void")


# --------------------------
# Parameter/function models
# --------------------------

class Ownership(Enum):
    """
    Ownership annotation of a handle argument.

    BORROW: the callee only looks at the handle (__isl_keep).
    CONSUME: the callee takes the handle over (__isl_take).
    """
    BORROW = "keep"
    CONSUME = "take"


@dataclass(frozen=True)
class ParameterInfo:
    name: str
    c_type: CType
    ownership: Ownership = Ownership.BORROW

    def to_dict(self) -> Dict:
        return {
            "name": self.name,
            "type": self.c_type.to_dict(),
            "ownership": self.ownership.value,
        }


@dataclass(frozen=True)
class FunctionInfo:
    """
    One library function. Returned handles are always given to the caller.
    """
    qualified_name: str
    parameters: Tuple[ParameterInfo, ...] = ()
    return_type: CType = VOID
    is_conversion_constructor: bool = False
    is_static: bool = False
    is_overload_candidate: bool = False

    @property
    def c_signature(self) -> str:
        """
        Human-friendly C signature for diagnostics.
        """
        params = ", ".join(f"{p.c_type.spelling} {p.name}" for p in self.parameters)
        return f"{self.return_type.spelling} {self.qualified_name}({params})"

    def to_dict(self) -> Dict:
        return {
            "name": self.qualified_name,
            "return_type": self.return_type.to_dict(),
            "parameters": [p.to_dict() for p in self.parameters],
            "is_conversion_constructor": self.is_conversion_constructor,
            "is_static": self.is_static,
            "is_overload_candidate": self.is_overload_candidate,
            "c_signature": self.c_signature,
        }


# --------------------------
# Class model
# --------------------------

@dataclass(frozen=True)
class ClassInfo:
    """
    One exported handle type and the functions associated with it.

    `methods` maps the sanitized method name (the function name with the class name
    stripped) to the overload group sharing that name, in the front end's order.
    """
    name: str
    constructors: Tuple[FunctionInfo, ...] = ()
    methods: Tuple[Tuple[str, Tuple[FunctionInfo, ...]], ...] = ()
    has_string_conversion: bool = False
    has_context_accessor: bool = False

    @property
    def method_groups(self) -> Dict[str, Tuple[FunctionInfo, ...]]:
        return dict(self.methods)

    @property
    def all_functions(self) -> List[FunctionInfo]:
        out = list(self.constructors)
        for _, group in self.methods:
            out.extend(group)
        return out

    def to_dict(self) -> Dict:
        return {
            "name": self.name,
            "has_string_conversion": self.has_string_conversion,
            "has_context_accessor": self.has_context_accessor,
            "constructors": [f.to_dict() for f in self.constructors],
            "methods": {name: [f.to_dict() for f in group] for name, group in self.methods},
        }


def group_methods(class_name: str, functions: Iterable[FunctionInfo]) -> Tuple[Tuple[str, Tuple[FunctionInfo, ...]], ...]:
    """
    Group functions by sanitized method name, keeping first-seen order.

    The sanitized name is the function name with '<class_name>_' removed.
    """
    groups: Dict[str, List[FunctionInfo]] = {}
    head = f"{class_name}_"
    for fn in functions:
        if not fn.qualified_name.startswith(head) or len(fn.qualified_name) == len(head):
            raise ModelError("method name does not start with its class name", class_name, fn.qualified_name)
        groups.setdefault(fn.qualified_name[len(head):], []).append(fn)
    return tuple((name, tuple(fns)) for name, fns in groups.items())


class ClassModel(Sequence[ClassInfo]):
    """
    Immutable, ordered collection of classes. Iteration order is the emission order.
    """

    def __init__(self, classes: Iterable[ClassInfo]) -> None:
        self._classes: Tuple[ClassInfo, ...] = tuple(classes)
        self._by_name: Dict[str, ClassInfo] = {}
        for ci in self._classes:
            if ci.name in self._by_name:
                raise ModelError("duplicate class name in model", ci.name)
            self._by_name[ci.name] = ci

    def __getitem__(self, index):  # type: ignore[override]
        return self._classes[index]

    def __len__(self) -> int:
        return len(self._classes)

    def __iter__(self) -> Iterator[ClassInfo]:
        return iter(self._classes)

    def __contains__(self, item: object) -> bool:
        if isinstance(item, str):
            return item in self._by_name
        return item in self._classes

    @property
    def names(self) -> List[str]:
        return [ci.name for ci in self._classes]

    def get(self, name: str) -> ClassInfo:
        try:
            return self._by_name[name]
        except KeyError:
            raise ModelError("referenced class has no descriptor", name) from None

    def to_dict(self) -> Dict:
        return {"classes": [ci.to_dict() for ci in self._classes]}


# --------------------------
# Library / generation settings
# --------------------------

DIM_KINDS: Tuple[Tuple[str, str], ...] = (
    ("Cst", "cst"),
    ("Param", "param"),
    ("In", "in"),
    ("Out", "out"),
    ("Set", "set"),
    ("Div", "div"),
    ("All", "all"),
)


@dataclass(frozen=True)
class LibraryConfig:
    """
    Naming conventions of the wrapped C library. Every library-level name derives from
    `prefix` unless set explicitly.
    """
    prefix: str = "lib"
    namespace: str = ""
    include_guard: str = ""
    includes: Tuple[str, ...] = ()
    conversion_marker: str = "from"

    @classmethod
    def for_prefix(cls, prefix: str, **overrides) -> "LibraryConfig":
        return cls(prefix=prefix, **overrides)

    @property
    def namespace_name(self) -> str:
        return self.namespace or self.prefix

    @property
    def guard_macro(self) -> str:
        return self.include_guard or f"{self.prefix.upper()}_CPP_ALL"

    @property
    def assert_macro(self) -> str:
        return f"{self.prefix.upper()}PP_ASSERT"

    @property
    def stringize_macro(self) -> str:
        return f"{self.prefix.upper()}PP_STRINGIZE"

    @property
    def context_type(self) -> str:
        return f"{self.prefix}_ctx"

    @property
    def bool_type(self) -> str:
        return f"{self.prefix}_bool"

    @property
    def dim_type(self) -> str:
        return f"{self.prefix}_dim_type"

    def bool_constant(self, state: str) -> str:
        return f"{self.prefix}_bool_{state}"

    @property
    def dim_constants(self) -> List[Tuple[str, str]]:
        return [(cpp, f"{self.prefix}_dim_{suffix}") for cpp, suffix in DIM_KINDS]

    def copy_function(self, class_name: str) -> str:
        return f"{class_name}_copy"

    def free_function(self, class_name: str) -> str:
        return f"{class_name}_free"

    def to_str_function(self, class_name: str) -> str:
        return f"{class_name}_to_str"

    def get_ctx_function(self, class_name: str) -> str:
        return f"{class_name}_get_ctx"

    def to_dict(self) -> Dict:
        return {
            "prefix": self.prefix,
            "namespace": self.namespace_name,
            "include_guard": self.guard_macro,
            "includes": list(self.includes),
            "conversion_marker": self.conversion_marker,
        }


class OverloadPolicy(Enum):
    """
    What to do with method names shared by several functions.
    SKIP drops the whole group from the output; ERROR reports it as a model error.
    """
    SKIP = "skip"
    ERROR = "error"


@dataclass(frozen=True)
class GeneratorConfig:
    overload_policy: OverloadPolicy = OverloadPolicy.SKIP
    exclude_language_keywords: bool = False
    jobs: int = 1


@dataclass
class GenerationContext:
    """
    Parameters for a single generation run from the command line.

    Paths are absolute. Emitters should rely on these rather than guessing.
    """
    output_path: Path
    templates_dir: Optional[Path]
    library: LibraryConfig
    config: GeneratorConfig = field(default_factory=GeneratorConfig)
    dry_run: bool = False

    def to_dict(self) -> Dict:
        return {
            "output_path": str(self.output_path),
            "templates_dir": str(self.templates_dir) if self.templates_dir else None,
            "library": self.library.to_dict(),
            "overload_policy": self.config.overload_policy.value,
            "exclude_language_keywords": self.config.exclude_language_keywords,
            "jobs": self.config.jobs,
            "dry_run": self.dry_run,
        }


__all__ = [
    "ModelError",
    "CType",
    "VOID",
    "Ownership",
    "ParameterInfo",
    "FunctionInfo",
    "ClassInfo",
    "ClassModel",
    "group_methods",
    "DIM_KINDS",
    "LibraryConfig",
    "OverloadPolicy",
    "GeneratorConfig",
    "GenerationContext",
]
