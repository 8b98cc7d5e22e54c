#!/usr/bin/env python3
"""
JSON manifest of a generation run.

Besides generator metadata and the invocation, the manifest records the outcome of every
classified declaration, so that functions left out of the wrapper (context-taking,
reserved, static, unsupported, overloaded) can be inspected instead of vanishing silently.
"""

import json
import os
import platform
import shlex
import sys
from datetime import datetime, timezone
from importlib import metadata as importlib_metadata
from pathlib import Path
from typing import Dict, Optional, Sequence

from . import __version__
from .classifier import ClassifiedClass
from .models import ClassModel, GenerationContext
from .type_mapping import build_known_class_map
from .utils import write_text

import logging
logger = logging.getLogger(__name__)

DIST_NAME = "handle-binding-generator"


def generator_version() -> str:
    """
    Installed distribution version, or the package's __version__ when running from source.
    """
    try:
        return importlib_metadata.version(DIST_NAME)
    except importlib_metadata.PackageNotFoundError:
        return __version__


def manifest_path_for(output_path: Path) -> Path:
    """
    'out/isl.h' -> 'out/isl.h.manifest.json'
    """
    output_path = Path(output_path)
    return output_path.with_name(output_path.name + ".manifest.json")


def build_manifest(
    ctx: GenerationContext,
    model: ClassModel,
    classified: Sequence[ClassifiedClass],
    argv: Optional[Sequence[str]] = None,
) -> Dict:
    """
    Assemble the manifest document. Passing `argv` explicitly keeps the result
    reproducible in tests; by default sys.argv is recorded.
    """
    argv = list(sys.argv if argv is None else argv)
    command_line = " ".join(shlex.quote(a) for a in argv) if argv else ""

    env_info = {
        "python_version": sys.version,
        "python_executable": sys.executable,
        "platform": platform.platform(),
        "system": platform.system(),
        "machine": platform.machine(),
        "cwd": os.getcwd(),
        "timestamp_utc": datetime.now(timezone.utc).isoformat(),
    }

    wrapper_names = build_known_class_map(model, ctx.library)
    classes = []
    totals: Dict[str, int] = {}
    for cc in classified:
        entry = cc.to_dict()
        entry["wrapper"] = wrapper_names[cc.cls.name]
        classes.append(entry)
        for outcome, count in entry["outcomes"].items():
            totals[outcome] = totals.get(outcome, 0) + count

    return {
        # Generator metadata
        "generator": {
            "name": DIST_NAME,
            "version": generator_version(),
        },

        # Invocation and environment details
        "invocation": {
            "argv": argv,
            "command_line": command_line,
        },
        "environment": env_info,

        # Configuration snapshot
        "context": ctx.to_dict(),
        "class_count": len(model),
        "outcome_totals": dict(sorted(totals.items())),
        "classes": classes,
        "model": model.to_dict(),
    }


def emit_manifest(
    ctx: GenerationContext,
    model: ClassModel,
    classified: Sequence[ClassifiedClass],
    path: Optional[Path] = None,
) -> Path:
    """
    Write the manifest next to the generated header (or to `path`) and return its path.
    """
    manifest_path = Path(path) if path else manifest_path_for(ctx.output_path)
    content = json.dumps(build_manifest(ctx, model, classified), indent=2) + "\n"
    write_text(manifest_path, content, dry_run=ctx.dry_run)
    return manifest_path


__all__ = [
    "DIST_NAME",
    "generator_version",
    "manifest_path_for",
    "build_manifest",
    "emit_manifest",
]
