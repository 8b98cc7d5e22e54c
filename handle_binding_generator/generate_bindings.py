#!/usr/bin/env python3
"""
C++ wrapper generator for opaque-handle C libraries.

This entrypoint wires together:
- Loading the declaration front end's JSON hand-off into the class model
- Classifying every constructor and method declaration
- Emitting (Jinja2-based) one self-contained C++ header of RAII wrapper classes

Outputs:
- <output>                      the wrapper header
- <output>.manifest.json        (optional) classification report for introspection

Usage (example):
  python -m handle_binding_generator.generate_bindings \
    --model build/isl-model.json \
    --prefix isl \
    --include isl/set.h --include isl/map.h \
    --output include/isl/cpp.h

Exit codes:
  1 template initialization failed
  2 the model could not be loaded
  3 generation failed (inconsistent model)
  4 the header could not be written
  5 the manifest could not be written
"""

from __future__ import annotations

import argparse
import dataclasses
import re
import sys
from pathlib import Path
from typing import Optional, Sequence
import logging

logger = logging.getLogger(__name__)

# Local modules
from . import __version__
from .models import GenerationContext, GeneratorConfig, LibraryConfig, ModelError, OverloadPolicy
from .utils import TemplateRenderer, configure_logging, write_text
from .manifest import emit_manifest
from .parsing.model_loader import load_model
from .emitters.cpp_emitter import CppEmitter, EmitterConfig
from .targets import TARGETS, get_target


# --------------------------
# Helpers
# --------------------------

def resolve_library(base: LibraryConfig, ns: argparse.Namespace) -> LibraryConfig:
    """
    Apply command-line overrides on top of the settings found in the model document.
    """
    overrides = {}
    if ns.prefix:
        overrides["prefix"] = ns.prefix
    if ns.namespace:
        overrides["namespace"] = ns.namespace
    if ns.include_guard:
        overrides["include_guard"] = ns.include_guard
    if ns.include:
        overrides["includes"] = tuple(base.includes) + tuple(ns.include)
    return dataclasses.replace(base, **overrides) if overrides else base


def resolve_log_level(ns: argparse.Namespace) -> int:
    if getattr(ns, "log_level", None):
        return getattr(logging, str(ns.log_level).upper(), logging.INFO)
    if getattr(ns, "verbose", 0) >= 1:
        return logging.DEBUG
    if getattr(ns, "quiet", 0) >= 2:
        return logging.ERROR
    if getattr(ns, "quiet", 0) == 1:
        return logging.WARNING
    return logging.INFO


# --------------------------
# CLI
# --------------------------

def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Generate a C++ RAII wrapper header for an opaque-handle C library")

    p.add_argument(
        "--model",
        required=True,
        help="JSON class model written by the declaration front end.",
    )
    p.add_argument(
        "--output",
        default=None,
        help="Path of the generated header. Defaults to generated/<namespace>.h.",
    )
    p.add_argument(
        "--templates-dir",
        default=None,
        help="Optional templates directory. If omitted, the package templates are used.",
    )
    p.add_argument(
        "--target",
        choices=sorted(TARGETS),
        default="cpp",
        help="Output target.",
    )
    p.add_argument(
        "--prefix",
        default=None,
        help="Library prefix of every C name (e.g., isl). Overrides the model document.",
    )
    p.add_argument(
        "--namespace",
        default=None,
        help="C++ namespace of the wrappers. Defaults to the prefix.",
    )
    p.add_argument(
        "--include-guard",
        default=None,
        help="Include guard macro. Defaults to <PREFIX>_CPP_ALL.",
    )
    p.add_argument(
        "--include",
        action="append",
        default=[],
        help="Library header to include from the output (repeatable).",
    )
    p.add_argument(
        "--exclude-regex",
        default="",
        help="Regex to exclude classes by C type name.",
    )
    p.add_argument(
        "--exclude-keywords",
        action="store_true",
        help="Also exclude methods whose name is a C++ keyword (e.g., union).",
    )
    p.add_argument(
        "--overload-policy",
        choices=[policy.value for policy in OverloadPolicy],
        default=OverloadPolicy.SKIP.value,
        help="skip: drop overloaded method groups; error: fail on them.",
    )
    p.add_argument(
        "-j",
        "--jobs",
        type=int,
        default=1,
        help="Classify classes in parallel with this many threads.",
    )
    p.add_argument(
        "--no-manifest",
        action="store_true",
        help="Do not emit the JSON manifest alongside the generated header.",
    )
    p.add_argument(
        "--dry-run",
        action="store_true",
        help="Load, classify and render without writing files.",
    )
    p.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (-v for DEBUG).",
    )
    p.add_argument(
        "-q",
        "--quiet",
        action="count",
        default=0,
        help="Decrease verbosity (-q for WARNING, -qq for ERROR).",
    )
    p.add_argument(
        "--log-level",
        choices=["CRITICAL","ERROR","WARNING","INFO","DEBUG","NOTSET","critical","error","warning","info","debug","notset"],
        default=None,
        help="Explicit log level (overrides -v/-q).",
    )
    p.add_argument(
        "--log-format",
        default="%(levelname)s: %(message)s",
        help="Logging format string.",
    )
    p.add_argument(
        "--log-file",
        default=None,
        help="Optional file to write logs to.",
    )
    p.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    return p.parse_args(argv)


# --------------------------
# Main
# --------------------------

def main(argv: Optional[Sequence[str]] = None) -> int:
    ns = parse_args(argv)

    # Configure logging as early as possible
    configure_logging(
        level=resolve_log_level(ns),
        to_file=ns.log_file,
        fmt=getattr(ns, "log_format", "%(levelname)s: %(message)s"),
    )

    templates_dir = Path(ns.templates_dir).resolve() if ns.templates_dir else None
    try:
        renderer = TemplateRenderer(templates_dir)
    except Exception:
        logger.exception("Failed to initialize templating")
        return 1

    # Load the class model
    try:
        model, document_library = load_model(ns.model, exclude_class_regex=ns.exclude_regex or None)
    except (OSError, ModelError, re.error):
        logger.exception("Failed to load model %s", ns.model)
        return 2
    logger.info("Loaded %d class(es) from %s", len(model), ns.model)

    library = resolve_library(document_library, ns)
    output = Path(ns.output) if ns.output else Path("generated") / f"{library.namespace_name}.h"
    ctx = GenerationContext(
        output_path=output.resolve(),
        templates_dir=templates_dir,
        library=library,
        config=GeneratorConfig(
            overload_policy=OverloadPolicy(ns.overload_policy),
            exclude_language_keywords=ns.exclude_keywords,
            jobs=max(1, ns.jobs),
        ),
        dry_run=ns.dry_run,
    )

    # Classify and render; nothing is written if the model is inconsistent
    emitter = CppEmitter(
        library=ctx.library,
        renderer=renderer,
        config=ctx.config,
        emitter_config=EmitterConfig(target=get_target(ns.target)),
    )
    try:
        result = emitter.generate(model)
    except ModelError:
        logger.exception("Failed to generate wrappers")
        return 3

    try:
        write_text(ctx.output_path, result.text, dry_run=ctx.dry_run)
    except OSError:
        logger.exception("Failed to write %s", ctx.output_path)
        return 4

    # Optional: emit a JSON manifest of the classification for debugging/inspection.
    if not ns.no_manifest:
        try:
            emit_manifest(ctx, model, result.classified)
        except OSError:
            logger.exception("Failed to emit generation manifest")
            return 5

    if ctx.dry_run:
        logger.info("Dry-run complete (no files written).")
    return 0


if __name__ == "__main__":
    sys.exit(main())
