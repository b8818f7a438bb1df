"""Validates a generated file set for structural correctness before assembly."""

import re
import xml.etree.ElementTree as ET
from collections import Counter
from typing import Sequence

from .base import GeneratedFile

_PACKAGE_RE = re.compile(r"^package\s+[A-Za-z_][\w.]*;", re.MULTILINE)
_TYPE_RE = re.compile(r"\b(class|interface|enum|record)\s+[A-Za-z_]\w*")


def validate_paths(files: Sequence[GeneratedFile]) -> dict[str, str]:
    """Report relative paths used by more than one file."""
    counts = Counter(f.relative_path for f in files)
    return {
        path: f"Duplicate path: {count} files share this relative path"
        for path, count in counts.items()
        if count > 1
    }


def validate_xml(files: Sequence[GeneratedFile]) -> dict[str, str]:
    """Check XML files are well formed.

    Returns dict of {relative_path: error_message} for files with errors.
    """
    errors = {}
    for f in files:
        if not f.relative_path.endswith(".xml"):
            continue
        try:
            ET.fromstring(f.content)
        except ET.ParseError as e:
            errors[f.relative_path] = f"XML ParseError: {e}"
    return errors


def validate_java(files: Sequence[GeneratedFile]) -> dict[str, str]:
    """Check Java sources declare a package and a type."""
    errors = {}
    for f in files:
        if not f.relative_path.endswith(".java") or not f.content.strip():
            continue
        if not _PACKAGE_RE.search(f.content):
            errors[f.relative_path] = "Java source has no package declaration"
        elif not _TYPE_RE.search(f.content):
            errors[f.relative_path] = "Java source declares no type"
    return errors


def validate_files(files: Sequence[GeneratedFile]) -> dict[str, str]:
    """Run all validations on generated files.

    Returns dict of {relative_path: error_message} for all files with errors.
    Content checks only run once paths are known to be unique.
    """
    errors = validate_paths(files)
    if not errors:
        errors.update(validate_xml(files))
        errors.update(validate_java(files))
    return errors
