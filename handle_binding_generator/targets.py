#!/usr/bin/env python3
"""
Output targets.

A target is a fixed set of formatting rules: which template renders the output unit, which
identifiers a method may not take, and which words cannot name a parameter. Targets are
plain data selected by name; the synthesis layer is shared.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, FrozenSet

from .models import GeneratorConfig

CPP_KEYWORDS: FrozenSet[str] = frozenset({
    "alignas", "alignof", "and", "and_eq", "asm", "auto", "bitand", "bitor", "bool", "break",
    "case", "catch", "char", "char16_t", "char32_t", "class", "compl", "const", "constexpr",
    "const_cast", "continue", "decltype", "default", "delete", "do", "double", "dynamic_cast",
    "else", "enum", "explicit", "export", "extern", "false", "float", "for", "friend", "goto",
    "if", "inline", "int", "long", "mutable", "namespace", "new", "noexcept", "not", "not_eq",
    "nullptr", "operator", "or", "or_eq", "private", "protected", "public", "register",
    "reinterpret_cast", "return", "short", "signed", "sizeof", "static", "static_assert",
    "static_cast", "struct", "switch", "template", "this", "thread_local", "throw", "true",
    "try", "typedef", "typeid", "typename", "union", "unsigned", "using", "virtual", "void",
    "volatile", "wchar_t", "while", "xor", "xor_eq",
})

# Members every wrapper class defines itself; library functions may not shadow them.
CPP_WRAPPER_MEMBERS: FrozenSet[str] = frozenset({
    "copy",
    "get",
    "release",
    "free",
    "is_null",
    "isNull",
    "get_str",
    "getStr",
    "to_str",
    "get_ctx",
    "getCtx",
    "manage",
})


@dataclass(frozen=True)
class TargetStyle:
    name: str
    template: str
    indent: str
    reserved_members: FrozenSet[str]
    keywords: FrozenSet[str]

    def reserved_identifiers(self, config: GeneratorConfig) -> FrozenSet[str]:
        """
        Method names the classifier must exclude under `config`.
        """
        if config.exclude_language_keywords:
            return self.reserved_members | self.keywords
        return self.reserved_members


CPP_TARGET = TargetStyle(
    name="cpp",
    template="cpp/unit.h.j2",
    indent="  ",
    reserved_members=CPP_WRAPPER_MEMBERS,
    keywords=CPP_KEYWORDS,
)

TARGETS: Dict[str, TargetStyle] = {CPP_TARGET.name: CPP_TARGET}


def get_target(name: str) -> TargetStyle:
    try:
        return TARGETS[name]
    except KeyError:
        raise ValueError(f"unknown target '{name}' (available: {', '.join(sorted(TARGETS))})") from None


__all__ = [
    "CPP_KEYWORDS",
    "CPP_WRAPPER_MEMBERS",
    "TargetStyle",
    "CPP_TARGET",
    "TARGETS",
    "get_target",
]
