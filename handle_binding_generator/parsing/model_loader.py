#!/usr/bin/env python3
"""
Loading of the declaration front end's hand-off into the class model.

The front end (a header scanner, out of scope here) writes one JSON document:

    {
      "library": {"prefix": "isl", "namespace": "isl", "includes": ["isl/set.h"]},
      "classes": [
        {
          "name": "isl_basic_set",
          "has_to_str": true,
          "has_get_ctx": true,
          "constructors": [ <function>, ... ],
          "methods": [ <function>, ... ]
        }
      ]
    }

where a function is

    {
      "name": "isl_basic_set_union",
      "return_type": "isl_basic_set *",
      "parameters": [
        {"name": "bset1", "type": "isl_basic_set *", "ownership": "take"},
        {"name": "bset2", "type": {"spelling": "enum isl_dim_type", "is_enum": true}}
      ],
      "is_static": false,
      "is_overload": false,
      "is_conversion_constructor": false
    }

Ownership is "take" (consumed) or "keep" (borrowed, the default). Types are either a plain
spelling or an object with 'spelling', 'is_enum' and 'is_integer' (the latter for
integral typedefs such as {"spelling": "isl_size", "is_integer": true}). Methods are
grouped by their name with the class name removed; classes, groups and functions keep the
document's order.

Any schema violation raises ModelError naming the class and function concerned.
"""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Pattern, Tuple, Union
import logging

from ..models import (
    CType,
    ClassInfo,
    ClassModel,
    FunctionInfo,
    LibraryConfig,
    ModelError,
    Ownership,
    ParameterInfo,
    VOID,
    group_methods,
)

logger = logging.getLogger(__name__)

_LIBRARY_KEYS = ("prefix", "namespace", "include_guard", "includes", "conversion_marker")


# --------------------------
# Field helpers
# --------------------------

def _require(obj: Mapping[str, Any], key: str, kind: type, where: Tuple[Optional[str], Optional[str]]) -> Any:
    if key not in obj:
        raise ModelError(f"missing required field '{key}'", *where)
    value = obj[key]
    if not isinstance(value, kind):
        raise ModelError(f"field '{key}' must be of type {kind.__name__}", *where)
    return value


def _optional_bool(obj: Mapping[str, Any], key: str, where: Tuple[Optional[str], Optional[str]]) -> bool:
    value = obj.get(key, False)
    if not isinstance(value, bool):
        raise ModelError(f"field '{key}' must be a boolean", *where)
    return value


def _parse_type(raw: Any, where: Tuple[Optional[str], Optional[str]]) -> CType:
    if isinstance(raw, str):
        return CType(raw)
    if isinstance(raw, Mapping):
        spelling = _require(raw, "spelling", str, where)
        return CType(
            spelling,
            is_enum=_optional_bool(raw, "is_enum", where),
            is_integer=_optional_bool(raw, "is_integer", where),
        )
    raise ModelError("type must be a spelling string or an object with 'spelling'", *where)


def _parse_ownership(raw: Any, where: Tuple[Optional[str], Optional[str]]) -> Ownership:
    if raw is None:
        return Ownership.BORROW
    try:
        return Ownership(raw)
    except ValueError:
        raise ModelError(f"unknown ownership annotation {raw!r} (expected 'take' or 'keep')", *where) from None


# --------------------------
# Document parsing
# --------------------------

def _parse_parameters(raw: Any, where: Tuple[Optional[str], Optional[str]]) -> Tuple[ParameterInfo, ...]:
    if not isinstance(raw, list):
        raise ModelError("'parameters' must be a list", *where)
    params: List[ParameterInfo] = []
    for i, p in enumerate(raw):
        if not isinstance(p, Mapping):
            raise ModelError(f"parameter {i} must be an object", *where)
        name = p.get("name") or ""
        if not isinstance(name, str):
            raise ModelError(f"parameter {i} name must be a string", *where)
        params.append(ParameterInfo(
            name=name,
            c_type=_parse_type(p.get("type"), where),
            ownership=_parse_ownership(p.get("ownership"), where),
        ))
    return tuple(params)


def _parse_function(raw: Any, class_name: str) -> FunctionInfo:
    if not isinstance(raw, Mapping):
        raise ModelError("function entry must be an object", class_name)
    name = _require(raw, "name", str, (class_name, None))
    where = (class_name, name)
    return_raw = raw.get("return_type")
    return FunctionInfo(
        qualified_name=name,
        parameters=_parse_parameters(raw.get("parameters", []), where),
        return_type=VOID if return_raw is None else _parse_type(return_raw, where),
        is_conversion_constructor=_optional_bool(raw, "is_conversion_constructor", where),
        is_static=_optional_bool(raw, "is_static", where),
        is_overload_candidate=_optional_bool(raw, "is_overload", where),
    )


def _parse_class(raw: Any) -> ClassInfo:
    if not isinstance(raw, Mapping):
        raise ModelError("class entry must be an object")
    name = _require(raw, "name", str, (None, None))
    where = (name, None)

    constructors_raw = raw.get("constructors", [])
    methods_raw = raw.get("methods", [])
    if not isinstance(constructors_raw, list) or not isinstance(methods_raw, list):
        raise ModelError("'constructors' and 'methods' must be lists", *where)

    constructors = tuple(_parse_function(f, name) for f in constructors_raw)
    methods = [_parse_function(f, name) for f in methods_raw]
    return ClassInfo(
        name=name,
        constructors=constructors,
        methods=group_methods(name, methods),
        has_string_conversion=_optional_bool(raw, "has_to_str", where),
        has_context_accessor=_optional_bool(raw, "has_get_ctx", where),
    )


def library_from_dict(raw: Optional[Mapping[str, Any]], base: Optional[LibraryConfig] = None) -> LibraryConfig:
    """
    Build the library settings from the document's 'library' object. Keys not present
    keep the value from `base` (or the defaults).
    """
    base = base or LibraryConfig()
    if raw is None:
        return base
    if not isinstance(raw, Mapping):
        raise ModelError("'library' must be an object")
    unknown = sorted(set(raw) - set(_LIBRARY_KEYS))
    if unknown:
        raise ModelError(f"unknown library setting(s): {', '.join(unknown)}")

    values: Dict[str, Any] = {k: getattr(base, k) for k in _LIBRARY_KEYS}
    for key in _LIBRARY_KEYS:
        if key not in raw:
            continue
        if key == "includes":
            includes = raw[key]
            if not isinstance(includes, list) or not all(isinstance(i, str) for i in includes):
                raise ModelError("'includes' must be a list of strings")
            values[key] = tuple(includes)
        else:
            if not isinstance(raw[key], str):
                raise ModelError(f"library setting '{key}' must be a string")
            values[key] = raw[key]
    return LibraryConfig(**values)


def model_from_dict(
    document: Mapping[str, Any],
    exclude_class_regex: Optional[Pattern[str]] = None,
) -> Tuple[ClassModel, LibraryConfig]:
    """
    Build the class model and library settings from a decoded hand-off document.
    """
    if not isinstance(document, Mapping):
        raise ModelError("model document must be a JSON object")
    classes_raw = document.get("classes")
    if not isinstance(classes_raw, list):
        raise ModelError("model document needs a 'classes' list")

    library = library_from_dict(document.get("library"))
    classes: List[ClassInfo] = []
    for raw in classes_raw:
        ci = _parse_class(raw)
        if exclude_class_regex is not None and exclude_class_regex.search(ci.name):
            logger.debug("Excluding class %s (matches exclude regex)", ci.name)
            continue
        classes.append(ci)

    model = ClassModel(classes)
    logger.debug("Loaded %d class(es): %s", len(model), ", ".join(model.names))
    return model, library


def load_model(
    path: Union[str, Path],
    exclude_class_regex: Optional[Union[str, Pattern[str]]] = None,
) -> Tuple[ClassModel, LibraryConfig]:
    """
    Read a hand-off document from disk. I/O errors propagate as OSError; malformed JSON
    and schema violations are reported as ModelError.
    """
    p = Path(path)
    with open(p, "r", encoding="utf-8") as f:
        try:
            document = json.load(f)
        except json.JSONDecodeError as e:
            raise ModelError(f"{p}: invalid JSON at line {e.lineno}, column {e.colno}: {e.msg}") from e

    pattern = re.compile(exclude_class_regex) if isinstance(exclude_class_regex, str) else exclude_class_regex
    return model_from_dict(document, exclude_class_regex=pattern)


__all__ = [
    "library_from_dict",
    "model_from_dict",
    "load_model",
]
