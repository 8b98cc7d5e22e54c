from __future__ import annotations

import pytest

from handle_binding_generator.classifier import DeclarationClassifier, Outcome
from handle_binding_generator.models import LibraryConfig
from handle_binding_generator.synthesizer import CallSynthesizer
from handle_binding_generator.type_mapping import TypeMapper
from handle_binding_generator.utils import TemplateRenderer

_filters = TemplateRenderer().env.filters
member_decl = _filters["member_decl"]
def_lines = _filters["def_lines"]


@pytest.fixture
def synthesized(isl_model, isl_mapper):
    """
    Synthesized members keyed by C function name.
    """
    classifier = DeclarationClassifier(isl_mapper)
    synth = CallSynthesizer(isl_mapper)
    out = {}
    for cc in classifier.classify_model(isl_model):
        for d in cc.conversion_constructors:
            out[d.function.qualified_name] = synth.conversion_constructor(cc.cls, d)
        for d in cc.methods:
            out[d.function.qualified_name] = synth.method(cc.cls, d)
    return out


class TestUnionScenario:
    def test_union_method(self, union_model):
        mapper = TypeMapper.from_model(union_model, LibraryConfig())
        cc = DeclarationClassifier(mapper).classify_class(union_model[0])
        member = CallSynthesizer(mapper).method(cc.cls, cc.methods[0])

        assert member_decl(member.decl) == "inline BasicSet union(const BasicSet &arg) const;"
        assert def_lines(member.definition) == [
            "BasicSet BasicSet::union(const BasicSet &arg) const {",
            "  return manage(lib_basic_set_union(copy(), arg.copy()));",
            "}",
        ]


class TestMethods:
    def test_borrowed_arguments_use_get(self, synthesized):
        member = synthesized["isl_set_is_subset"]
        assert member_decl(member.decl) == "inline Tribool isSubset(const Set &set2) const;"
        assert member.definition.body == ("return Tribool(isl_set_is_subset(get(), set2.get()));",)

    def test_dim_kind_argument_is_cast_back(self, synthesized):
        member = synthesized["isl_basic_set_dim"]
        assert member_decl(member.decl) == "inline unsigned dim(DimType type) const;"
        assert member.definition.body == ("return isl_basic_set_dim(get(), static_cast<isl_dim_type>(type));",)

    def test_dim_kind_result_is_cast(self, synthesized):
        member = synthesized["isl_set_dim_type_of"]
        assert member.decl.signature.return_spelling == "DimType"
        assert member.definition.body == ("return static_cast<DimType>(isl_set_dim_type_of(get(), pos));",)

    def test_integer_result_passes_through(self, synthesized):
        member = synthesized["isl_val_get_num_si"]
        assert member_decl(member.decl) == "inline long getNumSi() const;"
        assert member.definition.body == ("return isl_val_get_num_si(get());",)

    def test_consumed_receiver_and_argument(self, synthesized):
        member = synthesized["isl_val_add"]
        assert member.definition.body == ("return manage(isl_val_add(copy(), v2.copy()));",)

    def test_definition_owner_is_wrapper_class(self, synthesized):
        assert synthesized["isl_basic_set_is_empty"].definition.owner == "BasicSet"


class TestConversionConstructors:
    def test_conversion_constructor(self, synthesized):
        member = synthesized["isl_set_from_basic_set"]
        assert member_decl(member.decl) == "inline Set(const BasicSet &bset);"
        assert def_lines(member.definition) == ["Set::Set(const BasicSet &bset) : Ptr(isl_set_from_basic_set(bset.copy())) {}"]

    def test_unnamed_argument_gets_obj(self, isl_mapper, make_function, make_class):
        cls = make_class(
            "isl_set",
            constructors=[make_function("isl_set_from_basic_set", [("", "isl_basic_set *", "keep")], ret="isl_set *")],
        )
        cc = DeclarationClassifier(isl_mapper).classify_class(cls)
        member = CallSynthesizer(isl_mapper).conversion_constructor(cls, cc.conversion_constructors[0])
        assert member.definition.initializers == ("Ptr(isl_set_from_basic_set(obj.get()))",)


class TestParameterNames:
    def test_keyword_parameter_is_renamed(self, isl_mapper, make_function, make_class):
        cls = make_class(
            "isl_set",
            methods=[make_function("isl_set_fix_si", [("set", "isl_set *", "take"), ("int", "int")], ret="isl_set *")],
        )
        cc = DeclarationClassifier(isl_mapper).classify_class(cls)
        member = CallSynthesizer(isl_mapper).method(cls, cc.methods[0])
        assert [p.name for p in member.decl.signature.params] == ["int_"]
        assert member.definition.body == ("return manage(isl_set_fix_si(copy(), int_));",)

    def test_duplicate_and_missing_names(self, isl_mapper, make_function, make_class):
        cls = make_class(
            "isl_set",
            methods=[make_function("isl_set_box", [("set", "isl_set *"), ("n", "int"), ("n", "int"), ("", "int")], ret="int")],
        )
        cc = DeclarationClassifier(isl_mapper).classify_class(cls)
        member = CallSynthesizer(isl_mapper).method(cls, cc.methods[0])
        assert [p.name for p in member.decl.signature.params] == ["n", "n2", "arg3"]


class TestRejectsUnacceptedDecisions:
    def test_method_rejects_excluded(self, isl_model, isl_mapper):
        cc = DeclarationClassifier(isl_mapper).classify_class(isl_model.get("isl_set"))
        excluded = cc.with_outcome(Outcome.EXCLUDED_CONTEXT)[0]
        with pytest.raises(ValueError):
            CallSynthesizer(isl_mapper).method(cc.cls, excluded)

    def test_conversion_rejects_methods(self, isl_model, isl_mapper):
        cc = DeclarationClassifier(isl_mapper).classify_class(isl_model.get("isl_set"))
        with pytest.raises(ValueError):
            CallSynthesizer(isl_mapper).conversion_constructor(cc.cls, cc.methods[0])
