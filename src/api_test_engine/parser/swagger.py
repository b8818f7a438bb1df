"""OpenAPI 3.x translator.

Turns the text of an OpenAPI document into an :class:`ApiContract`. All
``$ref`` pointers are inlined up front, so every schema reached here is a
plain tree.
"""

import logging
import re
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from api_test_engine.config import DEFAULT_BASE_URL
from api_test_engine.diagnostics import new_trace_id, trace_logger
from api_test_engine.errors import ParseFailure

from .base import (
    BODY_METHODS,
    ApiContract,
    ApiEndpoint,
    ApiParameter,
    ApiSchema,
    HttpMethod,
    ParamLocation,
    ResolvedType,
    SchemaKind,
)
from .loader import ensure_openapi3, load_document, read_spec_file
from .resolver import resolve_refs
from .types import resolve_type, schema_kind

logger = logging.getLogger(__name__)

PREFERRED_MEDIA_TYPE = "application/json"

# Order in which operations of one path item are emitted.
METHOD_ORDER = (
    HttpMethod.GET,
    HttpMethod.POST,
    HttpMethod.PUT,
    HttpMethod.DELETE,
    HttpMethod.PATCH,
    HttpMethod.HEAD,
    HttpMethod.OPTIONS,
)

MAX_SCHEMA_DEPTH = 64


def synthesize_operation_id(http_method: str, path: str) -> str:
    """Build a stable identifier for an operation that declares none.

    ``GET /orders/{id}`` becomes ``get_orders_id``; ``GET /`` becomes ``get_root``.
    """
    sanitized = re.sub(r"[{}]", "", path).replace("/", "_").replace("-", "_")
    sanitized = sanitized.lstrip("_")
    return f"{http_method.lower()}_{sanitized or 'root'}"


def convert_schema(name: str, schema: Any, depth: int = 0) -> ApiSchema:
    """Recursively convert a raw schema into an :class:`ApiSchema`."""
    if depth > MAX_SCHEMA_DEPTH:
        raise ParseFailure(
            f"Schema '{name}' is nested more than {MAX_SCHEMA_DEPTH} levels deep. "
            "Recursive schemas are not supported."
        )
    if schema is None:
        return ApiSchema(name=name, kind=SchemaKind.OBJECT, resolved_type=ResolvedType.OBJECT)
    if not isinstance(schema, dict):
        raise ParseFailure(f"Schema '{name}' must be an object, got {type(schema).__name__}.")

    kind = schema_kind(schema)
    resolved = resolve_type(schema)
    description = _text(schema.get("description"))

    if kind is SchemaKind.ARRAY:
        item = convert_schema(f"{name}Item", schema.get("items"), depth + 1)
        return ApiSchema(
            name=name,
            kind=kind,
            resolved_type=resolved,
            item_schema=item,
            description=description,
        )

    properties = schema.get("properties")
    if kind is SchemaKind.OBJECT or properties:
        converted: dict[str, ApiSchema] = {}
        for prop_name, prop_schema in _mapping(properties, f"schema '{name}' properties").items():
            converted[str(prop_name)] = convert_schema(str(prop_name), prop_schema, depth + 1)
        return ApiSchema(
            name=name,
            kind=SchemaKind.OBJECT,
            resolved_type=resolved,
            properties=converted,
            description=description,
        )

    return ApiSchema(name=name, kind=kind, resolved_type=resolved, description=description)


class SpecTranslator:
    """Translates OpenAPI 3.x documents into contracts."""

    def __init__(self, default_base_url: str = DEFAULT_BASE_URL):
        self.default_base_url = default_base_url

    def translate(self, raw_text: str, trace_id: str | None = None) -> ApiContract:
        """Parse ``raw_text`` and build a validated contract.

        Raises ParseFailure for anything that cannot yield a contract.
        """
        log = trace_logger(logger, trace_id or new_trace_id())
        log.info("Starting OpenAPI translation | size=%d chars", len(raw_text or ""))

        document = load_document(raw_text)
        ensure_openapi3(document)
        document = resolve_refs(document)
        self._validate_structure(document, log)

        info = document["info"]
        title = _text(info.get("title")).strip() or None
        version = _text(info.get("version")).strip() or None
        description = _text(info.get("description")).strip()
        base_url = self._base_url(document, log)
        log.info(
            "API metadata extracted | title='%s' | version='%s' | baseUrl='%s'",
            title, version, base_url,
        )

        endpoints = self._extract_endpoints(document, log)
        if not endpoints:
            raise ParseFailure(
                "The OpenAPI specification defines paths but no operations. "
                "Declare at least one HTTP method under 'paths'."
            )
        log.info("Extracted %d endpoint(s)", len(endpoints))

        schemas = self._extract_component_schemas(document, log)
        log.info("Extracted %d component schema(s)", len(schemas))

        try:
            contract = ApiContract(
                title=title,
                version=version,
                description=description,
                base_url=base_url,
                endpoints=endpoints,
                schemas=schemas,
            )
        except ValidationError as e:
            raise ParseFailure(f"The specification produced an invalid contract: {e}", e) from e
        log.info("Translation complete | %s", contract)
        return contract

    def translate_file(self, file_path: Path, trace_id: str | None = None) -> ApiContract:
        return self.translate(read_spec_file(file_path), trace_id)

    # -- validation / metadata -------------------------------------------------

    def _validate_structure(self, document: dict[str, Any], log) -> None:
        if not isinstance(document.get("info"), dict):
            log.warning("OpenAPI spec is missing the 'info' section")
            raise ParseFailure(
                "The OpenAPI specification is missing the required 'info' section. "
                "Ensure your spec includes 'info.title' and 'info.version'."
            )
        paths = document.get("paths")
        if not isinstance(paths, dict) or not paths:
            log.warning("OpenAPI spec has no paths defined")
            raise ParseFailure(
                "The OpenAPI specification contains no paths (endpoints). "
                "Ensure the 'paths' section is present and defines at least one endpoint."
            )
        log.debug("Validation passed | pathCount=%d", len(paths))

    def _base_url(self, document: dict[str, Any], log) -> str:
        servers = document.get("servers")
        if not isinstance(servers, list) or not servers or not isinstance(servers[0], dict):
            log.debug("No servers defined in spec, defaulting to %s", self.default_base_url)
            return self.default_base_url
        url = _text(servers[0].get("url")).strip()
        if not url or url == "/":
            return self.default_base_url
        return url

    # -- endpoints ---------------------------------------------------------------

    def _extract_endpoints(self, document: dict[str, Any], log) -> list[ApiEndpoint]:
        endpoints: list[ApiEndpoint] = []
        for path, path_item in document["paths"].items():
            path = str(path)
            path_item = _mapping(path_item, f"path '{path}'")
            log.debug("Processing path: %s", path)
            shared_params = _list(path_item.get("parameters"), f"path '{path}' parameters")

            for method in METHOD_ORDER:
                operation = path_item.get(method.value.lower())
                if operation is None:
                    continue
                operation = _mapping(operation, f"{method.value} {path}")
                endpoints.append(self._build_endpoint(path, method, operation, shared_params, log))
                log.debug("Extracted endpoint: %s %s", method.value, path)
        return endpoints

    def _build_endpoint(
        self,
        path: str,
        method: HttpMethod,
        operation: dict[str, Any],
        shared_params: list,
        log,
    ) -> ApiEndpoint:
        declared_id = operation.get("operationId")
        if isinstance(declared_id, str) and declared_id.strip():
            operation_id = declared_id
        else:
            operation_id = synthesize_operation_id(method.value, path)

        try:
            return ApiEndpoint(
                path=path,
                http_method=method,
                summary=_text(operation.get("summary")),
                operation_id=operation_id,
                parameters=self._extract_parameters(shared_params, operation, log),
                request_body_schema=self._extract_request_body(method, path, operation, log),
                responses=self._extract_responses(operation, log),
                status_codes=_status_codes(operation),
            )
        except ValidationError as e:
            raise ParseFailure(f"Operation {method.value} {path} is invalid: {e}", e) from e

    def _extract_parameters(self, shared_params: list, operation: dict[str, Any], log) -> list[ApiParameter]:
        # Operation-level declarations override path-level ones with the same name and location.
        merged: dict[tuple[str, str], dict[str, Any]] = {}
        for raw in [*shared_params, *_list(operation.get("parameters"), "parameters")]:
            if not isinstance(raw, dict):
                log.warning("Skipping parameter that is not an object: %r", raw)
                continue
            name = _text(raw.get("name")).strip()
            if not name:
                log.warning("Skipping parameter with null/blank name")
                continue
            location = _text(raw.get("in")).strip().lower() or ParamLocation.QUERY.value
            merged[(name, location)] = raw

        result: list[ApiParameter] = []
        for (name, location), raw in merged.items():
            if location not in {loc.value for loc in ParamLocation}:
                log.warning("Skipping parameter '%s' with unsupported location '%s'", name, location)
                continue
            resolved = resolve_type(_parameter_schema(raw))
            result.append(
                ApiParameter(
                    name=name,
                    location=location,
                    resolved_type=resolved,
                    required=raw.get("required") is True,
                    description=_text(raw.get("description")),
                )
            )
            log.debug("Extracted parameter: %s (%s) [%s]", name, resolved.value, location)
        return result

    def _extract_request_body(
        self, method: HttpMethod, path: str, operation: dict[str, Any], log
    ) -> ApiSchema | None:
        body = operation.get("requestBody")
        if not isinstance(body, dict):
            return None
        if method not in BODY_METHODS:
            log.warning("Ignoring request body declared on %s %s", method.value, path)
            return None
        media = _preferred_media(body.get("content"))
        if media is None or media.get("schema") is None:
            return None
        schema = convert_schema("RequestBody", media["schema"])
        log.debug("Extracted request body schema: %s", schema)
        return schema

    def _extract_responses(self, operation: dict[str, Any], log) -> dict[str, ApiSchema]:
        responses = operation.get("responses")
        if not isinstance(responses, dict):
            return {}
        result: dict[str, ApiSchema] = {}
        for status, response in responses.items():
            # YAML reads unquoted status codes as integers.
            status = str(status)
            media = _preferred_media(response.get("content")) if isinstance(response, dict) else None
            if media is None or media.get("schema") is None:
                log.debug("Response %s has no content schema", status)
                continue
            result[status] = convert_schema(f"Response_{status}", media["schema"])
        return result

    # -- components ----------------------------------------------------------------

    def _extract_component_schemas(self, document: dict[str, Any], log) -> dict[str, ApiSchema]:
        components = document.get("components")
        if not isinstance(components, dict) or not isinstance(components.get("schemas"), dict):
            log.debug("No components/schemas section found in spec")
            return {}
        result: dict[str, ApiSchema] = {}
        for name, raw in components["schemas"].items():
            result[str(name)] = convert_schema(str(name), raw)
            log.debug("Extracted component schema: %s", result[str(name)])
        return result


def translate(raw_text: str, trace_id: str | None = None) -> ApiContract:
    """Translate document text with default settings."""
    return SpecTranslator().translate(raw_text, trace_id)


def parse_openapi(file_path: Path, trace_id: str | None = None) -> ApiContract:
    """Translate an OpenAPI file on disk."""
    return SpecTranslator().translate_file(file_path, trace_id)


# -- helpers -------------------------------------------------------------------


def _preferred_media(content: Any) -> dict[str, Any] | None:
    """Pick the JSON media type if declared, else the first one declared."""
    if not isinstance(content, dict) or not content:
        return None
    media = content.get(PREFERRED_MEDIA_TYPE)
    if media is None:
        media = next(iter(content.values()))
    return media if isinstance(media, dict) else None


def _parameter_schema(raw: dict[str, Any]) -> dict[str, Any] | None:
    schema = raw.get("schema")
    if isinstance(schema, dict):
        return schema
    media = _preferred_media(raw.get("content"))
    if media is not None and isinstance(media.get("schema"), dict):
        return media["schema"]
    return None


def _status_codes(operation: dict[str, Any]) -> tuple[str, ...]:
    responses = operation.get("responses")
    if not isinstance(responses, dict):
        return ()
    return tuple(str(status) for status in responses)


def _text(value: Any) -> str:
    return "" if value is None else str(value)


def _mapping(value: Any, where: str) -> dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ParseFailure(f"Expected an object for {where}, got {type(value).__name__}.")
    return value


def _list(value: Any, where: str) -> list:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ParseFailure(f"Expected a list for {where}, got {type(value).__name__}.")
    return value
