from __future__ import annotations

import json
from pathlib import Path
from typing import Sequence, Tuple, Union

import pytest

from handle_binding_generator.models import (
    CType,
    ClassInfo,
    ClassModel,
    FunctionInfo,
    LibraryConfig,
    Ownership,
    ParameterInfo,
    group_methods,
)
from handle_binding_generator.type_mapping import TypeMapper


def _param(name: str, spelling: str, ownership: str = "keep", is_enum: bool = False) -> ParameterInfo:
    return ParameterInfo(name, CType(spelling, is_enum=is_enum), Ownership(ownership))


def _function(name: str, params: Sequence[Tuple] = (), ret: Union[str, CType] = "void", **flags) -> FunctionInfo:
    return FunctionInfo(
        qualified_name=name,
        parameters=tuple(_param(*p) for p in params),
        return_type=ret if isinstance(ret, CType) else CType(ret),
        **flags,
    )


def _class(name: str, constructors: Sequence[FunctionInfo] = (), methods: Sequence[FunctionInfo] = (), **flags) -> ClassInfo:
    return ClassInfo(
        name=name,
        constructors=tuple(constructors),
        methods=group_methods(name, methods),
        **flags,
    )


@pytest.fixture
def make_param():
    return _param


@pytest.fixture
def make_function():
    return _function


@pytest.fixture
def make_class():
    return _class


@pytest.fixture
def lib_config() -> LibraryConfig:
    return LibraryConfig()


@pytest.fixture
def isl_config() -> LibraryConfig:
    return LibraryConfig.for_prefix("isl", includes=("isl/set.h", "isl/val.h"))


@pytest.fixture
def basic_set_model() -> ClassModel:
    """
    A class with no constructors and no methods at all.
    """
    return ClassModel([_class("lib_basic_set")])


@pytest.fixture
def union_model() -> ClassModel:
    union = _function(
        "lib_basic_set_union",
        [("bset", "lib_basic_set *", "take"), ("arg", "lib_basic_set *", "take")],
        ret="lib_basic_set *",
    )
    return ClassModel([_class("lib_basic_set", methods=[union])])


@pytest.fixture
def isl_model() -> ClassModel:
    """
    Three related classes covering every classification outcome.
    """
    val = _class(
        "isl_val",
        constructors=[
            _function("isl_val_int_from_si", [("ctx", "isl_ctx *"), ("i", "long")], ret="isl_val *"),
        ],
        methods=[
            _function("isl_val_is_zero", [("v", "isl_val *")], ret="isl_bool"),
            _function("isl_val_get_num_si", [("v", "isl_val *")], ret="long"),
            _function("isl_val_add", [("v1", "isl_val *", "take"), ("v2", "isl_val *", "take")], ret="isl_val *"),
        ],
        has_string_conversion=True,
        has_context_accessor=True,
    )
    basic_set = _class(
        "isl_basic_set",
        constructors=[
            _function("isl_basic_set_universe", [("space", "isl_space *", "take")], ret="isl_basic_set *"),
        ],
        methods=[
            _function(
                "isl_basic_set_union",
                [("bset1", "isl_basic_set *", "take"), ("bset2", "isl_basic_set *", "take")],
                ret="isl_basic_set *",
            ),
            _function(
                "isl_basic_set_dim",
                [("bset", "isl_basic_set *"), ("type", "enum isl_dim_type", "keep", True)],
                ret="unsigned",
            ),
            _function("isl_basic_set_is_empty", [("bset", "isl_basic_set *")], ret="isl_bool"),
        ],
        has_string_conversion=True,
    )
    set_ = _class(
        "isl_set",
        constructors=[
            _function("isl_set_from_basic_set", [("bset", "isl_basic_set *", "take")], ret="isl_set *"),
            _function("isl_set_read_from_str", [("ctx", "isl_ctx *"), ("str", "const char *")], ret="isl_set *"),
            _function("isl_set_copy_of", [("set", "isl_set *")], ret="isl_set *"),
        ],
        methods=[
            _function("isl_set_alloc", [("ctx", "isl_ctx *"), ("n", "unsigned")], ret="isl_set *"),
            _function("isl_set_copy", [("set", "isl_set *")], ret="isl_set *"),
            _function("isl_set_empty_like", [("set", "isl_set *")], ret="isl_set *", is_static=True),
            _function("isl_set_get_name", [("set", "isl_set *")], ret="const char *"),
            _function("isl_set_intersect", [("set1", "isl_set *", "take"), ("set2", "isl_set *", "take")], ret="isl_set *"),
            _function("isl_set_intersect", [("set1", "isl_set *", "take"), ("bset", "isl_basic_set *", "take")], ret="isl_set *"),
            _function("isl_set_coalesce", [("set", "isl_set *", "take")], ret="isl_set *", is_overload_candidate=True),
            _function(
                "isl_set_is_subset",
                [("set1", "isl_set *"), ("set2", "isl_set *")],
                ret="isl_bool",
            ),
            _function(
                "isl_set_dim_type_of",
                [("set", "isl_set *"), ("pos", "int")],
                ret="enum isl_dim_type",
            ),
        ],
    )
    return ClassModel([val, basic_set, set_])


@pytest.fixture
def isl_mapper(isl_model, isl_config) -> TypeMapper:
    return TypeMapper.from_model(isl_model, isl_config)


@pytest.fixture
def model_document() -> dict:
    return {
        "library": {"prefix": "isl", "includes": ["isl/set.h"]},
        "classes": [
            {
                "name": "isl_basic_set",
                "has_to_str": True,
                "constructors": [],
                "methods": [
                    {
                        "name": "isl_basic_set_union",
                        "return_type": "isl_basic_set *",
                        "parameters": [
                            {"name": "bset1", "type": "isl_basic_set *", "ownership": "take"},
                            {"name": "bset2", "type": "isl_basic_set *", "ownership": "take"},
                        ],
                    },
                    {
                        "name": "isl_basic_set_dim",
                        "return_type": "unsigned",
                        "parameters": [
                            {"name": "bset", "type": "isl_basic_set *"},
                            {"name": "type", "type": {"spelling": "enum isl_dim_type", "is_enum": True}},
                        ],
                    },
                ],
            },
            {
                "name": "isl_set",
                "has_get_ctx": True,
                "constructors": [
                    {
                        "name": "isl_set_from_basic_set",
                        "return_type": "isl_set *",
                        "parameters": [{"name": "bset", "type": "isl_basic_set *", "ownership": "take"}],
                    },
                ],
                "methods": [
                    {
                        "name": "isl_set_is_empty",
                        "return_type": "isl_bool",
                        "parameters": [{"name": "set", "type": "isl_set *"}],
                    },
                    {
                        "name": "isl_set_coalesce",
                        "return_type": "isl_set *",
                        "parameters": [{"name": "set", "type": "isl_set *", "ownership": "take"}],
                        "is_overload": True,
                    },
                ],
            },
        ],
    }


@pytest.fixture
def model_file(tmp_path: Path, model_document: dict) -> Path:
    path = tmp_path / "model.json"
    path.write_text(json.dumps(model_document))
    return path
