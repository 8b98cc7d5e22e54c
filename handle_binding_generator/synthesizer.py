#!/usr/bin/env python3
"""
Signature and forwarding-call synthesis for accepted declarations.

For each method or conversion constructor the classifier accepted, build:
- the wrapper-side signature (receiver dropped, handles as 'const Wrapper &', the
  dimension-kind enumeration as DimType, other values by value with their C spelling)
- the forwarding body: the C function called with the accessor the ownership rule picks
  for every handle, DimType arguments cast back to the native enumeration, and the result
  wrapped according to its type (manage() for handles, Tribool(...) for tri-states)

Outputs are emission nodes (see ir.py); nothing here formats text beyond expressions.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import FrozenSet, List, Set, Tuple

from .classifier import Decision, Outcome
from .ir import MemberDecl, MethodDef, Param, Signature
from .models import ClassInfo, FunctionInfo
from .ownership import handle_argument, wrap_result
from .targets import CPP_KEYWORDS
from .type_mapping import TypeKind, TypeMapper
from .utils import sanitize_identifier, to_camel_case


@dataclass(frozen=True)
class SynthesizedMember:
    function: FunctionInfo
    decl: MemberDecl
    definition: MethodDef


class CallSynthesizer:
    """
    Builds member declarations and definitions for accepted functions.

    Usage:
        synth = CallSynthesizer(mapper)
        for d in classified.methods:
            member = synth.method(cls, d)
    """

    def __init__(self, mapper: TypeMapper, keywords: FrozenSet[str] = CPP_KEYWORDS) -> None:
        self.mapper = mapper
        self.keywords = keywords

    # ---- Public API ----

    def method(self, cls: ClassInfo, decision: Decision) -> SynthesizedMember:
        if decision.outcome is not Outcome.METHOD or decision.method_name is None:
            raise ValueError(f"{decision.function.qualified_name} was not accepted as a method")
        fn = decision.function
        class_name = self.mapper.class_name(cls.name)
        name = to_camel_case(decision.method_name, start_lowercase=True)

        params, args = self._parameters(fn, first=1)
        args.insert(0, handle_argument(fn, 0))
        call = f"{fn.qualified_name}({', '.join(args)})"

        ret = self.mapper.map_return(fn.return_type)
        if ret.ref.kind is TypeKind.HANDLE:
            result = wrap_result(call)
        else:
            result = (ret.from_native_expr or "{expr}").replace("{expr}", call)

        sig = Signature(name=name, params=tuple(params), return_spelling=ret.exposed_spelling, qualifiers="const")
        return SynthesizedMember(
            function=fn,
            decl=MemberDecl(sig),
            definition=MethodDef(sig, owner=class_name, body=(f"return {result};",)),
        )

    def conversion_constructor(self, cls: ClassInfo, decision: Decision) -> SynthesizedMember:
        if decision.outcome is not Outcome.CONVERSION_CONSTRUCTOR:
            raise ValueError(f"{decision.function.qualified_name} was not accepted as a conversion constructor")
        fn = decision.function
        class_name = self.mapper.class_name(cls.name)

        params, args = self._parameters(fn, first=0, fallback="obj")
        sig = Signature(name=class_name, params=tuple(params))
        return SynthesizedMember(
            function=fn,
            decl=MemberDecl(sig),
            definition=MethodDef(
                sig,
                owner=class_name,
                initializers=(f"Ptr({fn.qualified_name}({', '.join(args)}))",),
            ),
        )

    # ---- Helpers ----

    def _parameters(self, fn: FunctionInfo, first: int, fallback: str = "") -> Tuple[List[Param], List[str]]:
        """
        Signature parameters and native argument expressions for fn.parameters[first:].
        """
        params: List[Param] = []
        args: List[str] = []
        used: Set[str] = {"Ptr"}
        for index in range(first, len(fn.parameters)):
            p = fn.parameters[index]
            name = sanitize_identifier(p.name, fallback or f"arg{index}", self.keywords)
            if name in used:
                name = f"{name}{index}"
            used.add(name)

            mapped = self.mapper.map_parameter(p.c_type)
            params.append(Param(mapped.exposed_spelling, name))
            if mapped.ref.kind is TypeKind.HANDLE:
                args.append(handle_argument(fn, index, name))
            else:
                args.append((mapped.to_native_expr or "{var}").replace("{var}", name))
        return params, args


__all__ = [
    "SynthesizedMember",
    "CallSynthesizer",
]
