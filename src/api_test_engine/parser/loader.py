"""Read contract documents and check their dialect.

YAML and JSON documents are both read with PyYAML, since JSON is a subset
of YAML.
"""

from pathlib import Path
from typing import Any

import yaml

from api_test_engine.errors import ParseFailure


def read_spec_file(file_path: Path) -> str:
    """Read a contract file as UTF-8 text."""
    try:
        return file_path.read_bytes().decode("utf-8")
    except UnicodeDecodeError as e:
        raise ParseFailure(
            "Unable to read the contract file: it is not valid UTF-8 text.", e
        ) from e
    except OSError as e:
        raise ParseFailure(f"Unable to read the contract file: {e.strerror or e}.", e) from e


def load_document(text: str) -> dict[str, Any]:
    """Parse document text into a mapping."""
    if not text or not text.strip():
        raise ParseFailure("The contract document is empty.")
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ParseFailure(
            "The document is not valid YAML or JSON. "
            f"Parser details: {_squash(str(e))}",
            e,
        ) from e
    except RecursionError as e:
        raise ParseFailure("The document is nested too deeply to be parsed.", e) from e
    if not isinstance(data, dict):
        raise ParseFailure("The document must be a YAML or JSON object at the top level.")
    return data


def detect_dialect(document: dict[str, Any]) -> str:
    """Return 'openapi3', 'swagger2' or 'unknown' for a loaded document."""
    version = document.get("openapi")
    if version is not None and str(version).startswith("3."):
        return "openapi3"
    if "swagger" in document:
        return "swagger2"
    return "unknown"


def ensure_openapi3(document: dict[str, Any]) -> None:
    """Reject documents that are not OpenAPI 3.x."""
    dialect = detect_dialect(document)
    if dialect == "swagger2":
        raise ParseFailure(
            "Swagger 2.0 documents are not supported. Convert the file to OpenAPI 3.x first."
        )
    if dialect != "openapi3":
        raise ParseFailure(
            "The document is not an OpenAPI 3.x specification: "
            "the top-level 'openapi' field must declare a 3.x version."
        )


def _squash(message: str) -> str:
    return " ".join(message.split()) or "no details available"
