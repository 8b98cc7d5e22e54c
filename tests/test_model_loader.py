from __future__ import annotations

import copy
import json
import re

import pytest

from handle_binding_generator.models import LibraryConfig, ModelError, Ownership
from handle_binding_generator.parsing.model_loader import library_from_dict, load_model, model_from_dict


class TestModelFromDict:
    def test_classes_keep_document_order(self, model_document):
        model, _ = model_from_dict(model_document)
        assert model.names == ["isl_basic_set", "isl_set"]

    def test_library_settings(self, model_document):
        _, library = model_from_dict(model_document)
        assert library.prefix == "isl"
        assert library.includes == ("isl/set.h",)
        assert library.namespace_name == "isl"

    def test_functions(self, model_document):
        model, _ = model_from_dict(model_document)
        basic_set = model.get("isl_basic_set")
        assert basic_set.has_string_conversion
        assert not basic_set.has_context_accessor
        union = basic_set.method_groups["union"][0]
        assert union.return_type.spelling == "isl_basic_set *"
        assert [p.ownership for p in union.parameters] == [Ownership.CONSUME, Ownership.CONSUME]

    def test_ownership_defaults_to_borrow(self, model_document):
        model, _ = model_from_dict(model_document)
        is_empty = model.get("isl_set").method_groups["is_empty"][0]
        assert is_empty.parameters[0].ownership is Ownership.BORROW

    def test_enum_types(self, model_document):
        model, _ = model_from_dict(model_document)
        dim = model.get("isl_basic_set").method_groups["dim"][0]
        assert dim.parameters[1].c_type.is_enum

    def test_integer_typedef_flag(self, model_document):
        doc = copy.deepcopy(model_document)
        dim = doc["classes"][0]["methods"][1]
        dim["return_type"] = {"spelling": "isl_size", "is_integer": True}
        model, _ = model_from_dict(doc)
        ret = model.get("isl_basic_set").method_groups["dim"][0].return_type
        assert ret.spelling == "isl_size"
        assert ret.is_integer
        assert not ret.is_enum

    def test_flags(self, model_document):
        model, _ = model_from_dict(model_document)
        set_ = model.get("isl_set")
        assert set_.has_context_accessor
        assert set_.method_groups["coalesce"][0].is_overload_candidate

    def test_overloads_share_a_group(self, model_document):
        doc = copy.deepcopy(model_document)
        methods = doc["classes"][0]["methods"]
        methods.append(copy.deepcopy(methods[0]))
        model, _ = model_from_dict(doc)
        groups = model.get("isl_basic_set").methods
        assert [name for name, _ in groups] == ["union", "dim"]
        assert len(groups[0][1]) == 2

    def test_exclude_regex(self, model_document):
        model, _ = model_from_dict(model_document, exclude_class_regex=re.compile("basic"))
        assert model.names == ["isl_set"]


class TestSchemaErrors:
    def test_classes_must_be_a_list(self):
        with pytest.raises(ModelError, match="classes"):
            model_from_dict({"classes": {}})

    def test_duplicate_class(self, model_document):
        doc = copy.deepcopy(model_document)
        doc["classes"].append(copy.deepcopy(doc["classes"][0]))
        with pytest.raises(ModelError, match="duplicate"):
            model_from_dict(doc)

    def test_method_outside_its_class(self, model_document):
        doc = copy.deepcopy(model_document)
        doc["classes"][1]["methods"][0]["name"] = "isl_map_is_empty"
        with pytest.raises(ModelError, match="isl_map_is_empty"):
            model_from_dict(doc)

    def test_unknown_ownership(self, model_document):
        doc = copy.deepcopy(model_document)
        doc["classes"][0]["methods"][0]["parameters"][0]["ownership"] = "give"
        with pytest.raises(ModelError, match="ownership"):
            model_from_dict(doc)

    def test_missing_function_name(self, model_document):
        doc = copy.deepcopy(model_document)
        del doc["classes"][0]["methods"][0]["name"]
        with pytest.raises(ModelError, match="name"):
            model_from_dict(doc)

    def test_flag_must_be_boolean(self, model_document):
        doc = copy.deepcopy(model_document)
        doc["classes"][0]["has_to_str"] = "yes"
        with pytest.raises(ModelError, match="has_to_str"):
            model_from_dict(doc)

    def test_unknown_library_setting(self):
        with pytest.raises(ModelError, match="suffix"):
            library_from_dict({"suffix": "x"})


class TestLibraryFromDict:
    def test_missing_keys_keep_base(self):
        base = LibraryConfig.for_prefix("isl", namespace="islpp")
        library = library_from_dict({"includes": ["isl/map.h"]}, base)
        assert library.prefix == "isl"
        assert library.namespace == "islpp"
        assert library.includes == ("isl/map.h",)

    def test_no_library_object(self):
        assert library_from_dict(None) == LibraryConfig()


class TestLoadModel:
    def test_from_file(self, model_file):
        model, library = load_model(model_file)
        assert len(model) == 2
        assert library.prefix == "isl"

    def test_exclude_regex_string(self, model_file):
        model, _ = load_model(model_file, exclude_class_regex="^isl_set$")
        assert model.names == ["isl_basic_set"]

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{\"classes\": [")
        with pytest.raises(ModelError, match="invalid JSON"):
            load_model(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(OSError):
            load_model(tmp_path / "missing.json")

    def test_round_trip_through_json(self, tmp_path, model_document):
        path = tmp_path / "again.json"
        path.write_text(json.dumps(model_document, indent=2))
        first, _ = load_model(path)
        second, _ = model_from_dict(model_document)
        assert first.to_dict() == second.to_dict()
