#!/usr/bin/env python3
"""
Emitter for the C++ handle wrapper header.

This module takes the class model, runs the classifier and the call synthesizer, and
assembles one self-contained output unit in a fixed section order:

1. include guard and includes
2. namespace open
3. forward declarations (one per class, model order)
4. Tribool block
5. DimType enumeration block
6. class declaration blocks (model order)
7. class definition blocks (same order)
8. namespace close and guard end

Two passes: every declaration block is built before any definition, so a method of one
class may return or take any other class by value.

Every wrapper class always gets a default constructor, a copy constructor, copy-and-swap
assignment, a destructor and the copy/get/release/isNull pointer accessors, whatever the
model says. String and context accessors are added when the class provides them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple
import logging

from ..classifier import ClassifiedClass, DeclarationClassifier
from ..ir import (
    ClassBlock,
    ClassDefinitions,
    DimKindBlock,
    ForwardDecl,
    MemberDecl,
    MethodDef,
    OutputUnit,
    Param,
    Signature,
    TriboolBlock,
)
from ..models import ClassInfo, ClassModel, GeneratorConfig, LibraryConfig
from ..ownership import FACTORY_NAME
from ..synthesizer import CallSynthesizer, SynthesizedMember
from ..targets import CPP_TARGET, TargetStyle
from ..tribool import OPERATORS, TriState
from ..type_mapping import DIM_KIND_CLASS, TRIBOOL_CLASS, TypeMapper
from ..utils import TemplateRenderer

logger = logging.getLogger(__name__)

SYSTEM_INCLUDES: Tuple[str, ...] = (
    "<cstddef>",
    "<cstdio>",
    "<cstdlib>",
    "<ostream>",
    "<string>",
    "<utility>",
)


# --------------------------
# Configuration
# --------------------------

@dataclass(frozen=True)
class EmitterConfig:
    """
    Configuration for the C++ emitter.
    """
    target: TargetStyle = CPP_TARGET
    system_includes: Tuple[str, ...] = SYSTEM_INCLUDES
    # Emit 'std::ostream &operator<<' for classes with a string conversion
    emit_stream_operator: bool = True


@dataclass
class GenerationResult:
    text: str
    unit: OutputUnit
    classified: List[ClassifiedClass] = field(default_factory=list)


# --------------------------
# Emitter
# --------------------------

class CppEmitter:
    """
    Emit the C++ wrapper header for a class model.

    Usage:
        emitter = CppEmitter(library, renderer)
        result = emitter.generate(model)
        result.text  # the header
    """

    def __init__(
        self,
        library: LibraryConfig,
        renderer: Optional[TemplateRenderer] = None,
        config: Optional[GeneratorConfig] = None,
        emitter_config: Optional[EmitterConfig] = None,
    ) -> None:
        self.library = library
        self.renderer = renderer or TemplateRenderer()
        self.config = config or GeneratorConfig()
        self.emitter_config = emitter_config or EmitterConfig()

    @property
    def target(self) -> TargetStyle:
        return self.emitter_config.target

    # ---- Public API ----

    def generate(self, model: ClassModel) -> GenerationResult:
        """
        Classify, synthesize and render. Raises ModelError without producing any text if
        the model is inconsistent.
        """
        unit, classified = self.build_unit(model)
        text = self.render(unit)
        self._log_summary(classified)
        return GenerationResult(text=text, unit=unit, classified=classified)

    def build_unit(self, model: ClassModel) -> Tuple[OutputUnit, List[ClassifiedClass]]:
        mapper = TypeMapper.from_model(model, self.library)
        classifier = DeclarationClassifier(
            mapper,
            reserved=self.target.reserved_identifiers(self.config),
            overload_policy=self.config.overload_policy,
            keywords=self.target.keywords,
        )
        synth = CallSynthesizer(mapper, keywords=self.target.keywords)

        classified = classifier.classify_model(model, jobs=self.config.jobs)

        blocks: List[ClassBlock] = []
        definitions: List[ClassDefinitions] = []
        for cc in classified:
            conversions = [synth.conversion_constructor(cc.cls, d) for d in cc.conversion_constructors]
            methods = [synth.method(cc.cls, d) for d in cc.methods]
            if not conversions and not methods:
                logger.warning("Wrapper %s for %s has no conversion constructors or methods; generating minimal skeleton", mapper.class_name(cc.cls.name), cc.cls.name)
            # Pass 1 and pass 2 inputs; rendering keeps all blocks ahead of all definitions.
            blocks.append(self._class_block(mapper, cc.cls, conversions, methods))
            definitions.append(self._class_definitions(mapper, cc.cls, conversions, methods))

        unit = OutputUnit(
            guard=self.library.guard_macro,
            includes=self._includes(),
            namespace=self.library.namespace_name,
            forward_decls=tuple(ForwardDecl(mapper.class_name(ci.name)) for ci in model),
            tribool=self._tribool_block(),
            dim_kind=DimKindBlock(DIM_KIND_CLASS, tuple(self.library.dim_constants)),
            class_blocks=tuple(blocks),
            class_definitions=tuple(definitions),
        )
        return unit, classified

    def render(self, unit: OutputUnit) -> str:
        context = {
            "unit": unit,
            "namespace": unit.namespace,
            "indent": self.target.indent,
        }
        return self.renderer.render(self.target.template, context)

    # ---- Preamble ----

    def _includes(self) -> Tuple[str, ...]:
        out: List[str] = list(self.emitter_config.system_includes)
        for inc in self.library.includes:
            out.append(inc if inc.startswith(("<", '"')) else f"<{inc}>")
        return tuple(out)

    def _tribool_block(self) -> TriboolBlock:
        constants = tuple(
            (state.name.capitalize(), self.library.bool_constant(state.constant_suffix))
            for state in (TriState.FALSE, TriState.TRUE, TriState.ERROR)
        )
        return TriboolBlock(
            class_name=TRIBOOL_CLASS,
            native_type=self.library.bool_type,
            assert_macro=self.library.assert_macro,
            stringize_macro=self.library.stringize_macro,
            constants=constants,
            operators=OPERATORS,
        )

    # ---- Pass 1: declarations ----

    def _factory(self, cpp: str, c_name: str) -> Signature:
        return Signature(FACTORY_NAME, (Param(f"{c_name} *", "ptr"),), return_spelling=cpp)

    def _class_block(
        self,
        mapper: TypeMapper,
        cls: ClassInfo,
        conversions: Sequence[SynthesizedMember],
        methods: Sequence[SynthesizedMember],
    ) -> ClassBlock:
        cpp = mapper.class_name(cls.name)
        c_ptr = f"{cls.name} *"

        public: List[MemberDecl] = [
            MemberDecl(Signature(cpp)),
            MemberDecl(Signature(cpp, (Param(f"const {cpp} &", "obj"),))),
        ]
        public.extend(m.decl for m in conversions)
        public.extend([
            MemberDecl(Signature("operator=", (Param(cpp, "obj"),), return_spelling=f"{cpp} &")),
            MemberDecl(Signature(f"~{cpp}")),
            MemberDecl(Signature("copy", return_spelling=c_ptr, qualifiers="const &")),
            MemberDecl(Signature("copy", return_spelling=c_ptr, qualifiers="&&"), trailer="= delete"),
            MemberDecl(Signature("get", return_spelling=c_ptr, qualifiers="const")),
            MemberDecl(Signature("release", return_spelling=c_ptr)),
            MemberDecl(Signature("isNull", return_spelling="bool", qualifiers="const")),
        ])
        if cls.has_string_conversion:
            public.append(MemberDecl(Signature("getStr", return_spelling="std::string", qualifiers="const")))
        if cls.has_context_accessor:
            public.append(MemberDecl(Signature("getCtx", return_spelling=f"{self.library.context_type} *", qualifiers="const")))
        public.extend(m.decl for m in methods)

        return ClassBlock(
            class_name=cpp,
            factory=MemberDecl(self._factory(cpp, cls.name)),
            fields=(f"{c_ptr}Ptr = nullptr;",),
            private=(MemberDecl(Signature(cpp, (Param(c_ptr, "ptr"),)), specifiers=("inline", "explicit")),),
            public=tuple(public),
        )

    # ---- Pass 2: definitions ----

    def _class_definitions(
        self,
        mapper: TypeMapper,
        cls: ClassInfo,
        conversions: Sequence[SynthesizedMember],
        methods: Sequence[SynthesizedMember],
    ) -> ClassDefinitions:
        cpp = mapper.class_name(cls.name)
        c_ptr = f"{cls.name} *"
        lib = self.library

        defs: List[MethodDef] = [
            MethodDef(self._factory(cpp, cls.name), body=(f"return {cpp}(ptr);",)),
            MethodDef(Signature(cpp), owner=cpp, initializers=("Ptr(nullptr)",)),
            MethodDef(Signature(cpp, (Param(f"const {cpp} &", "obj"),)), owner=cpp, initializers=("Ptr(obj.copy())",)),
            MethodDef(Signature(cpp, (Param(c_ptr, "ptr"),)), owner=cpp, initializers=("Ptr(ptr)",)),
        ]
        defs.extend(m.definition for m in conversions)
        defs.extend([
            MethodDef(
                Signature("operator=", (Param(cpp, "obj"),), return_spelling=f"{cpp} &"),
                owner=cpp,
                body=("std::swap(this->Ptr, obj.Ptr);", "return *this;"),
            ),
            MethodDef(
                Signature(f"~{cpp}"),
                owner=cpp,
                body=("if (Ptr)", f"  {lib.free_function(cls.name)}(Ptr);"),
            ),
            MethodDef(
                Signature("copy", return_spelling=c_ptr, qualifiers="const &"),
                owner=cpp,
                body=(f"return {lib.copy_function(cls.name)}(Ptr);",),
            ),
            MethodDef(Signature("get", return_spelling=c_ptr, qualifiers="const"), owner=cpp, body=("return Ptr;",)),
            MethodDef(
                Signature("release", return_spelling=c_ptr),
                owner=cpp,
                body=(f"{c_ptr}Tmp = Ptr;", "Ptr = nullptr;", "return Tmp;"),
            ),
            MethodDef(
                Signature("isNull", return_spelling="bool", qualifiers="const"),
                owner=cpp,
                body=("return Ptr == nullptr;",),
            ),
        ])
        if cls.has_string_conversion:
            defs.append(MethodDef(
                Signature("getStr", return_spelling="std::string", qualifiers="const"),
                owner=cpp,
                body=(
                    f"char *Tmp = {lib.to_str_function(cls.name)}(get());",
                    "if (!Tmp)",
                    "  return std::string();",
                    "std::string S(Tmp);",
                    "free(Tmp);",
                    "return S;",
                ),
            ))
            if self.emitter_config.emit_stream_operator:
                defs.append(MethodDef(
                    Signature(
                        "operator<<",
                        (Param("std::ostream &", "OS"), Param(f"const {cpp} &", "Obj")),
                        return_spelling="std::ostream &",
                    ),
                    specifiers=("inline",),
                    body=("OS << Obj.getStr();", "return OS;"),
                ))
        if cls.has_context_accessor:
            defs.append(MethodDef(
                Signature("getCtx", return_spelling=f"{lib.context_type} *", qualifiers="const"),
                owner=cpp,
                body=(f"return {lib.get_ctx_function(cls.name)}(get());",),
            ))
        defs.extend(m.definition for m in methods)

        return ClassDefinitions(class_name=cpp, definitions=tuple(defs))

    # ---- Reporting ----

    def _log_summary(self, classified: Sequence[ClassifiedClass]) -> None:
        methods = sum(len(cc.methods) for cc in classified)
        conversions = sum(len(cc.conversion_constructors) for cc in classified)
        skipped = sum(len(cc.skipped_overloads) for cc in classified)
        excluded = sum(len(cc.excluded) for cc in classified)
        logger.info(
            "Generated %d class(es): %d method(s), %d conversion constructor(s); %d overloaded and %d excluded declaration(s) not emitted",
            len(classified),
            methods,
            conversions,
            skipped,
            excluded,
        )


__all__ = [
    "SYSTEM_INCLUDES",
    "EmitterConfig",
    "GenerationResult",
    "CppEmitter",
]
