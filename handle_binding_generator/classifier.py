#!/usr/bin/env python3
"""
Declaration classification.

Every function attached to a class (through its constructor set or one of its method
groups) receives exactly one Outcome. Rules are evaluated in a fixed order and the first
match wins:

1. EXCLUDED_CONTEXT         first parameter is the library context type
2. EXCLUDED_RESERVED        method name collides with a reserved identifier
3. EXCLUDED_STATIC          flagged static by the front end (no receiver)
4. EXCLUDED_UNSUPPORTED     a non-receiver parameter or the result cannot be wrapped
5. CONVERSION_CONSTRUCTOR   one parameter of a different handle type, name has the
                            conversion marker (constructor set only; other constructors
                            are EXCLUDED_NOT_CONVERSION)
6. SKIPPED_OVERLOAD         the method name is shared by several surviving functions, or
                            its only function is an overload candidate
7. METHOD                   everything else

The default/copy constructors, the assignment operator and the destructor are not looked
up here; the emitter always synthesizes them.

A METHOD whose wrapper name is a language keyword is still emitted, with a warning, unless
the keywords are part of the reserved set.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from enum import Enum
from typing import Dict, FrozenSet, Iterable, List, Optional, Sequence, Tuple
import logging

from .models import ClassInfo, ClassModel, FunctionInfo, ModelError, OverloadPolicy
from .type_mapping import TypeKind, TypeMapper
from .utils import split_segments, to_method_name

logger = logging.getLogger(__name__)


class Outcome(Enum):
    EXCLUDED_CONTEXT = "excluded-context"
    EXCLUDED_RESERVED = "excluded-reserved"
    EXCLUDED_STATIC = "excluded-static"
    EXCLUDED_UNSUPPORTED = "excluded-unsupported"
    EXCLUDED_NOT_CONVERSION = "excluded-not-conversion"
    CONVERSION_CONSTRUCTOR = "conversion-constructor"
    SKIPPED_OVERLOAD = "skipped-overload"
    METHOD = "method"

    @property
    def is_emitted(self) -> bool:
        return self in (Outcome.CONVERSION_CONSTRUCTOR, Outcome.METHOD)


@dataclass(frozen=True)
class Decision:
    """
    Outcome for one function. `method_name` is the sanitized name of its method group, or
    None for entries of the constructor set.
    """
    function: FunctionInfo
    outcome: Outcome
    method_name: Optional[str] = None
    reason: str = ""

    def to_dict(self) -> Dict:
        return {
            "function": self.function.qualified_name,
            "method_name": self.method_name,
            "outcome": self.outcome.value,
            "reason": self.reason,
        }


@dataclass(frozen=True)
class ClassifiedClass:
    cls: ClassInfo
    decisions: Tuple[Decision, ...]

    def with_outcome(self, *outcomes: Outcome) -> List[Decision]:
        return [d for d in self.decisions if d.outcome in outcomes]

    @property
    def conversion_constructors(self) -> List[Decision]:
        return self.with_outcome(Outcome.CONVERSION_CONSTRUCTOR)

    @property
    def methods(self) -> List[Decision]:
        return self.with_outcome(Outcome.METHOD)

    @property
    def skipped_overloads(self) -> List[Decision]:
        return self.with_outcome(Outcome.SKIPPED_OVERLOAD)

    @property
    def excluded(self) -> List[Decision]:
        return [d for d in self.decisions if not d.outcome.is_emitted and d.outcome is not Outcome.SKIPPED_OVERLOAD]

    def outcome_counts(self) -> Dict[str, int]:
        counts: Dict[str, int] = {}
        for d in self.decisions:
            counts[d.outcome.value] = counts.get(d.outcome.value, 0) + 1
        return counts

    def to_dict(self) -> Dict:
        return {
            "name": self.cls.name,
            "outcomes": self.outcome_counts(),
            "decisions": [d.to_dict() for d in self.decisions],
        }


class DeclarationClassifier:
    """
    Sorts the constructor and method declarations of each class into outcomes.

    Usage:
        classifier = DeclarationClassifier(mapper, reserved=target.reserved_identifiers(), keywords=target.keywords)
        classified = classifier.classify_model(model)
    """

    def __init__(
        self,
        mapper: TypeMapper,
        reserved: Iterable[str] = (),
        overload_policy: OverloadPolicy = OverloadPolicy.SKIP,
        keywords: Iterable[str] = (),
    ) -> None:
        self.mapper = mapper
        self.reserved: FrozenSet[str] = frozenset(reserved)
        self.overload_policy = overload_policy
        self.keywords: FrozenSet[str] = frozenset(keywords)

    # ---- Public API ----

    def classify_model(self, model: ClassModel, jobs: int = 1) -> List[ClassifiedClass]:
        """
        Classify every class, returning results in model order whatever `jobs` is.
        """
        if jobs > 1 and len(model) > 1:
            with ThreadPoolExecutor(max_workers=jobs) as pool:
                return list(pool.map(self.classify_class, model))
        return [self.classify_class(ci) for ci in model]

    def classify_class(self, cls: ClassInfo) -> ClassifiedClass:
        decisions: List[Decision] = []
        for fn in cls.constructors:
            decisions.append(self._classify_constructor(cls, fn))
        for name, group in cls.methods:
            decisions.extend(self._classify_group(cls, name, group))

        result = ClassifiedClass(cls=cls, decisions=tuple(decisions))
        for d in result.decisions:
            logger.debug("%s: %s -> %s%s", cls.name, d.function.c_signature, d.outcome.value, f" ({d.reason})" if d.reason else "")
        for d in result.methods:
            emitted = to_method_name(d.method_name, prefix="")
            if emitted in self.keywords:
                logger.warning(
                    "%s: method '%s' (from %s) is a C++ keyword and will not compile; "
                    "pass --exclude-keywords to leave it out",
                    cls.name,
                    emitted,
                    d.function.qualified_name,
                )
        return result

    # ---- Constructors ----

    def _classify_constructor(self, cls: ClassInfo, fn: FunctionInfo) -> Decision:
        params = fn.parameters
        if params and self.mapper.is_context_type(params[0].c_type):
            return Decision(fn, Outcome.EXCLUDED_CONTEXT, reason="takes the library context")

        for p in params:
            if not self.mapper.classify(p.c_type).is_supported:
                return Decision(fn, Outcome.EXCLUDED_UNSUPPORTED, reason=f"parameter '{p.name}' has unsupported type '{p.c_type.spelling}'")
        result = self.mapper.classify(fn.return_type)
        if result.kind is not TypeKind.HANDLE or result.class_name != cls.name:
            return Decision(fn, Outcome.EXCLUDED_UNSUPPORTED, reason=f"does not return '{cls.name}'")

        if len(params) != 1:
            return Decision(fn, Outcome.EXCLUDED_NOT_CONVERSION, reason=f"takes {len(params)} parameters")
        source = self.mapper.classify(params[0].c_type)
        if source.kind is not TypeKind.HANDLE or source.class_name == cls.name:
            return Decision(fn, Outcome.EXCLUDED_NOT_CONVERSION, reason="argument is not a different handle type")
        if not (fn.is_conversion_constructor or self.has_conversion_marker(fn)):
            return Decision(fn, Outcome.EXCLUDED_NOT_CONVERSION, reason=f"name lacks the '{self.mapper.library.conversion_marker}' marker")
        return Decision(fn, Outcome.CONVERSION_CONSTRUCTOR)

    def has_conversion_marker(self, fn: FunctionInfo) -> bool:
        return self.mapper.library.conversion_marker in split_segments(fn.qualified_name)

    # ---- Methods ----

    def _classify_group(self, cls: ClassInfo, name: str, group: Sequence[FunctionInfo]) -> List[Decision]:
        decided: List[Decision] = []
        survivors: List[FunctionInfo] = []
        for fn in group:
            excluded = self._method_exclusion(cls, name, fn)
            if excluded is None:
                survivors.append(fn)
            decided.append(excluded or Decision(fn, Outcome.METHOD, name))

        is_overloaded = len(survivors) > 1 or (len(survivors) == 1 and survivors[0].is_overload_candidate)
        if not is_overloaded:
            return decided

        if self.overload_policy is OverloadPolicy.ERROR:
            raise ModelError(f"overloaded method group '{name}' cannot be wrapped", cls.name, survivors[0].qualified_name)
        reason = f"method name '{name}' is shared by {len(survivors)} functions" if len(survivors) > 1 else "flagged as an overload"
        return [
            Decision(d.function, Outcome.SKIPPED_OVERLOAD, name, reason) if d.outcome is Outcome.METHOD else d
            for d in decided
        ]

    def _method_exclusion(self, cls: ClassInfo, name: str, fn: FunctionInfo) -> Optional[Decision]:
        params = fn.parameters
        if not params:
            raise ModelError("method has no receiver parameter", cls.name, fn.qualified_name)

        if self.mapper.is_context_type(params[0].c_type):
            return Decision(fn, Outcome.EXCLUDED_CONTEXT, name, "takes the library context")

        if self.is_reserved(name):
            return Decision(fn, Outcome.EXCLUDED_RESERVED, name, f"'{name}' is a reserved identifier")

        if fn.is_static:
            return Decision(fn, Outcome.EXCLUDED_STATIC, name, "no receiver parameter")
        receiver = self.mapper.classify(params[0].c_type)
        if receiver.kind is not TypeKind.HANDLE or receiver.class_name != cls.name:
            raise ModelError(
                f"receiver type '{params[0].c_type.spelling}' does not match the class and the method is not static",
                cls.name,
                fn.qualified_name,
            )

        for p in params[1:]:
            if not self.mapper.classify(p.c_type).is_supported:
                return Decision(fn, Outcome.EXCLUDED_UNSUPPORTED, name, f"parameter '{p.name}' has unsupported type '{p.c_type.spelling}'")
        if not self.mapper.classify(fn.return_type).is_supported:
            return Decision(fn, Outcome.EXCLUDED_UNSUPPORTED, name, f"unsupported return type '{fn.return_type.spelling}'")
        return None

    def is_reserved(self, name: str) -> bool:
        return name in self.reserved or to_method_name(name, prefix="") in self.reserved


__all__ = [
    "Outcome",
    "Decision",
    "ClassifiedClass",
    "DeclarationClassifier",
]
