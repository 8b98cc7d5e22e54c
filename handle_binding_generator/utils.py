#!/usr/bin/env python3
"""
Utilities for naming, templating (Jinja2) and file I/O for the handle binding generator.

This module provides:
- The C-to-C++ naming conventions (snake_case C identifiers to CamelCase classes and
  lowerCamelCase methods).
- Layered Jinja2 environment creation with user templates and package templates.
- Template filters that turn emission nodes into single lines of C++.
- Production-grade file writing helpers (atomic writes, newline normalization, idempotency).

The goal is to keep the rest of the codebase clean and focused on classification and
synthesis logic.
"""

from __future__ import annotations

import os
import sys
import tempfile
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, TextIO, Union
import logging

from jinja2 import (
    ChoiceLoader,
    Environment,
    FileSystemLoader,
    PackageLoader,
    StrictUndefined,
    TemplateNotFound,
)

logger = logging.getLogger(__name__)

PACKAGE_NAME = "handle_binding_generator"


def configure_logging(
    level: Optional[Union[int, str]] = None,
    *,
    to_file: Optional[Union[str, Path]] = None,
    fmt: Optional[str] = None,
    stream: Optional[TextIO] = None,
    propagate_package_loggers: bool = True,
) -> None:
    """
    Configure project-wide logging with consistent formatting and optional file output.

    Parameters:
    - level: int or name (e.g., 'INFO', 'DEBUG'). Defaults to INFO.
    - to_file: path to a log file; if provided, logs are also written there.
    - fmt: logging format string. Defaults to '%(levelname)s: %(message)s'.
    - stream: stream for console logs (defaults to sys.stderr).
    - propagate_package_loggers: whether the package logger propagates to root.
    """
    if level is None:
        resolved_level = logging.INFO
    elif isinstance(level, str):
        resolved_level = getattr(logging, level.upper(), logging.INFO)
    else:
        resolved_level = int(level)

    log_format = fmt or "%(levelname)s: %(message)s"
    stream = stream or sys.stderr

    # Reset root handlers for deterministic setup
    root = logging.getLogger()
    for h in list(root.handlers):
        root.removeHandler(h)
    root.setLevel(resolved_level)

    handlers: List[logging.Handler] = []

    stream_handler = logging.StreamHandler(stream)
    stream_handler.setLevel(resolved_level)
    stream_handler.setFormatter(logging.Formatter(log_format))
    handlers.append(stream_handler)

    if to_file:
        file_handler = logging.FileHandler(str(to_file), mode="w")
        file_handler.setLevel(resolved_level)
        file_handler.setFormatter(logging.Formatter(log_format))
        handlers.append(file_handler)

    for h in handlers:
        root.addHandler(h)

    pkg_logger = logging.getLogger(PACKAGE_NAME)
    pkg_logger.setLevel(resolved_level)
    pkg_logger.propagate = propagate_package_loggers


# ----------------------------------------
# Naming
# ----------------------------------------

def split_segments(name: str) -> List[str]:
    """
    Split a snake_case identifier into its non-empty segments.
    """
    return [seg for seg in (name or "").split("_") if seg]


def strip_prefix(name: str, prefix: str) -> str:
    """
    Remove '<prefix>_' from the front of a C identifier if present.
    """
    head = f"{prefix}_" if prefix else ""
    if head and name.startswith(head):
        return name[len(head):]
    return name


def to_camel_case(name: str, start_lowercase: bool = False) -> str:
    """
    Join the underscore-delimited segments of `name`, capitalising each one.

    With start_lowercase the very first character is lowered instead:
      'basic_set_union' -> 'BasicSetUnion' / 'basicSetUnion'
    """
    out = "".join(seg[:1].upper() + seg[1:] for seg in split_segments(name))
    if start_lowercase and out:
        out = out[:1].lower() + out[1:]
    return out


def to_class_name(c_name: str, prefix: str = "lib") -> str:
    """
    Translate a C handle type name into its wrapper class name.

      lib_basic_set -> BasicSet
    """
    return to_camel_case(strip_prefix(c_name, prefix))


def to_method_name(c_name: str, receiver: Optional[str] = None, prefix: str = "lib") -> str:
    """
    Translate a C function name into a lowerCamelCase method name.

    If `receiver` (the C name of the class the method is attached to) is given and is a
    prefix of `c_name`, it is stripped; otherwise only the library prefix is removed.

      ('lib_basic_set_union', receiver='lib_basic_set') -> 'union'
      ('lib_basic_set_union')                            -> 'basicSetUnion'
    """
    if receiver and c_name.startswith(f"{receiver}_"):
        rest = c_name[len(receiver) + 1:]
    else:
        rest = strip_prefix(c_name, prefix)
    return to_camel_case(rest, start_lowercase=True)


def sanitize_identifier(name: Optional[str], fallback: str, reserved: Sequence[str] = ()) -> str:
    """
    Return `name` if it is usable as a C++ parameter name, else `fallback`.
    """
    if not name or not (name[0].isalpha() or name[0] == "_"):
        return fallback
    if not all(ch.isalnum() or ch == "_" for ch in name):
        return fallback
    if name in reserved:
        return f"{name}_"
    return name


# ----------------------------------------
# Jinja environment helpers
# ----------------------------------------

class TemplateRenderer:
    """
    A thin wrapper over a Jinja2 Environment with layered loaders and emission filters.
    - templates_dir: user-provided templates directory (highest precedence)
    - package templates: handle_binding_generator/templates
    """

    def __init__(self, templates_dir: Optional[Path] = None) -> None:
        loaders: List[Any] = []

        if templates_dir:
            p = Path(templates_dir)
            if p.is_dir():
                loaders.append(FileSystemLoader(str(p)))
            else:
                logger.warning("Templates directory %s does not exist; using package templates", p)

        # Prefer PackageLoader; fall back to the source tree when running uninstalled.
        try:
            loaders.append(PackageLoader(PACKAGE_NAME, "templates"))
        except ValueError:
            pkg_templates_fs = Path(__file__).parent / "templates"
            loaders.append(FileSystemLoader(str(pkg_templates_fs)))

        self.env = Environment(
            loader=ChoiceLoader(loaders),
            undefined=StrictUndefined,
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
            autoescape=False,
        )

        self._register_filters()

    def _register_filters(self) -> None:
        self.env.filters["param_list"] = _filter_param_list
        self.env.filters["member_decl"] = _filter_member_decl
        self.env.filters["def_lines"] = _filter_def_lines

    def render(self, template_name: str, context: Dict[str, Any]) -> str:
        try:
            template = self.env.get_template(template_name)
        except TemplateNotFound as e:
            raise RuntimeError(f"Template not found: {template_name}") from e
        return template.render(**context)


# ----------------------------------------
# Template filter implementations
# ----------------------------------------

def _filter_param_list(params: Sequence[Any]) -> str:
    """
    Render 'T1 a, const T2 &b' from a sequence of Param nodes.
    """
    parts: List[str] = []
    for p in params:
        spelling = p.type_spelling
        if spelling.endswith(("&", "*")):
            parts.append(f"{spelling}{p.name}")
        else:
            parts.append(f"{spelling} {p.name}")
    return ", ".join(parts)


def _filter_member_decl(decl: Any) -> str:
    """
    Render one in-class member declaration line (without indentation).

      inline BasicSet unite(const BasicSet &arg) const;
    """
    sig = decl.signature
    words = list(decl.specifiers)
    if sig.return_spelling is not None:
        head = sig.return_spelling if sig.return_spelling.endswith(("*", "&")) else f"{sig.return_spelling} "
    else:
        head = ""
    words_text = " ".join(words)
    lead = f"{words_text} " if words_text else ""
    suffix = f" {sig.qualifiers}" if sig.qualifiers else ""
    tail = f" {decl.trailer}" if decl.trailer else ""
    return f"{lead}{head}{sig.name}({_filter_param_list(sig.params)}){suffix}{tail};"


def _filter_def_lines(defn: Any, indent: str = "  ") -> List[str]:
    """
    Render an out-of-line definition as a list of lines. A constructor with an
    initializer list and no body collapses to one line:

      BasicSet::BasicSet() : Ptr(nullptr) {}
    """
    sig = defn.signature
    if sig.return_spelling is not None:
        head = sig.return_spelling if sig.return_spelling.endswith(("*", "&")) else f"{sig.return_spelling} "
    else:
        head = ""
    words = " ".join(defn.specifiers)
    lead = f"{words} " if words else ""
    scope = f"{defn.owner}::" if defn.owner else ""
    suffix = f" {sig.qualifiers}" if sig.qualifiers else ""
    init = f" : {', '.join(defn.initializers)}" if defn.initializers else ""
    opening = f"{lead}{head}{scope}{sig.name}({_filter_param_list(sig.params)}){suffix}{init}"
    if not defn.body:
        return [f"{opening} {{}}"]
    return [f"{opening} {{"] + [f"{indent}{line}" if line else "" for line in defn.body] + ["}"]


# ----------------------------------------
# File I/O helpers
# ----------------------------------------

def ensure_dir(p: Path) -> None:
    """
    Ensure directory exists (mkdir -p).
    """
    Path(p).mkdir(parents=True, exist_ok=True)


def normalize_newlines(text: str) -> str:
    """
    Normalize to Unix newlines for reproducible diffs and consistent build environments.
    """
    return text.replace("\r\n", "\n").replace("\r", "\n")


def _read_text_if_exists(path: Path, encoding: str = "utf-8") -> Optional[str]:
    try:
        with open(path, "r", encoding=encoding, newline="") as f:
            return f.read()
    except FileNotFoundError:
        return None


def atomic_write_text(
    path: Path,
    content: str,
    encoding: str = "utf-8",
    make_parents: bool = True,
    mode: Optional[int] = 0o644,
    log: bool = True,
    only_if_changed: bool = True,
) -> bool:
    """
    Write text atomically to the given path:
    - Optionally avoid writing if the content is unchanged.
    - Write to a temp file in the same directory and os.replace to final path.
    - Set POSIX file mode if provided.

    Returns True if a write occurred, False if skipped due to idempotency.
    """
    path = Path(path)
    content = normalize_newlines(content)
    if make_parents:
        ensure_dir(path.parent)

    if only_if_changed:
        old = _read_text_if_exists(path, encoding=encoding)
        if old is not None and normalize_newlines(old) == content:
            if log:
                logger.debug("[skip] %s (unchanged)", path)
            return False

    fd, tmp_path = tempfile.mkstemp(prefix=f".{path.name}.", dir=str(path.parent))
    try:
        with os.fdopen(fd, "w", encoding=encoding, newline="\n") as f:
            f.write(content)
        if mode is not None:
            os.chmod(tmp_path, mode)
        os.replace(tmp_path, path)
    except BaseException:
        if os.path.exists(tmp_path):
            os.remove(tmp_path)
        raise
    if log:
        logger.info("[write] %s", path)
    return True


def write_text(
    path: Path,
    content: str,
    encoding: str = "utf-8",
    dry_run: bool = False,
    log: bool = True,
) -> bool:
    """
    Convenience wrapper over atomic_write_text with optional dry-run support.
    """
    if dry_run:
        if log:
            logger.info("[dry-run] write %s", path)
        return False
    return atomic_write_text(Path(path), content, encoding=encoding, log=log)


__all__ = [
    "TemplateRenderer",
    "configure_logging",
    "split_segments",
    "strip_prefix",
    "to_camel_case",
    "to_class_name",
    "to_method_name",
    "sanitize_identifier",
    "ensure_dir",
    "normalize_newlines",
    "atomic_write_text",
    "write_text",
]
