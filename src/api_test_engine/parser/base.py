"""Contract model: the format-neutral representation of a parsed API.

The translator builds these from an OpenAPI document and the generator reads
them. Instances are frozen; sequences are stored as tuples and mappings as
read-only views, so a contract can be shared between readers once built.
"""

from enum import Enum
from types import MappingProxyType
from typing import Annotated, Any, Mapping

from pydantic import (
    AfterValidator,
    BaseModel,
    ConfigDict,
    PlainSerializer,
    field_validator,
    model_validator,
)

from api_test_engine.config import DEFAULT_BASE_URL


def _freeze(value: Mapping) -> Mapping:
    return MappingProxyType(dict(value))


FROZEN = ConfigDict(frozen=True, validate_default=True)


class ParamLocation(str, Enum):
    PATH = "path"
    QUERY = "query"
    HEADER = "header"
    COOKIE = "cookie"


class SchemaKind(str, Enum):
    OBJECT = "object"
    ARRAY = "array"
    STRING = "string"
    INTEGER = "integer"
    NUMBER = "number"
    BOOLEAN = "boolean"


class ResolvedType(str, Enum):
    """Semantic type a schema or parameter resolves to.

    ``OBJECT`` doubles as the generic type for anything that could not be
    narrowed down (missing schema, unknown type, composed schema).
    """

    STRING = "string"
    INTEGER = "integer"
    LONG = "long"
    FLOAT = "float"
    DOUBLE = "double"
    BOOLEAN = "boolean"
    LIST = "list"
    OBJECT = "object"


class HttpMethod(str, Enum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"
    HEAD = "HEAD"
    OPTIONS = "OPTIONS"


# Methods whose request body has defined semantics.
BODY_METHODS = frozenset({HttpMethod.POST, HttpMethod.PUT, HttpMethod.PATCH})


def _none_to_empty(value: Any) -> Any:
    return "" if value is None else value


class ApiParameter(BaseModel):
    """A single operation parameter (path, query, header, or cookie)."""

    model_config = FROZEN

    name: str
    location: ParamLocation = ParamLocation.QUERY
    resolved_type: ResolvedType = ResolvedType.STRING
    required: bool = False
    description: str = ""

    @field_validator("description", mode="before")
    @classmethod
    def _blank_description(cls, value: Any) -> Any:
        return _none_to_empty(value)

    @model_validator(mode="before")
    @classmethod
    def _normalize(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        location = data.get("location")
        if isinstance(location, str) and not isinstance(location, ParamLocation):
            location = location.lower()
            data = {**data, "location": location}
        # Path parameters are always required.
        if getattr(location, "value", location) == ParamLocation.PATH.value:
            data = {**data, "required": True}
        return data

    @field_validator("name")
    @classmethod
    def _check_name(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("parameter name must not be blank")
        return value


class ApiSchema(BaseModel):
    """A recursive description of a data shape."""

    model_config = FROZEN

    name: str = ""
    kind: SchemaKind = SchemaKind.OBJECT
    resolved_type: ResolvedType = ResolvedType.OBJECT
    properties: Annotated[
        Mapping[str, "ApiSchema"],
        AfterValidator(_freeze),
        PlainSerializer(lambda m: dict(m)),
    ] = {}
    item_schema: "ApiSchema | None" = None
    description: str = ""

    @field_validator("name", "description", mode="before")
    @classmethod
    def _blank_strings(cls, value: Any) -> Any:
        return _none_to_empty(value)

    @model_validator(mode="after")
    def _check_shape(self) -> "ApiSchema":
        if (self.item_schema is not None) != (self.kind is SchemaKind.ARRAY):
            raise ValueError("item_schema must be set exactly when kind is array")
        if self.properties and self.kind is not SchemaKind.OBJECT:
            raise ValueError("only object schemas may declare properties")
        return self

    @property
    def is_object(self) -> bool:
        """True for object schemas that actually declare properties."""
        return self.kind is SchemaKind.OBJECT and bool(self.properties)

    @property
    def is_array(self) -> bool:
        return self.kind is SchemaKind.ARRAY

    def __str__(self) -> str:
        return (
            f"ApiSchema(name={self.name!r}, kind={self.kind.value}, "
            f"type={self.resolved_type.value}, properties={len(self.properties)})"
        )


class ApiEndpoint(BaseModel):
    """One HTTP method + path combination with its parameters, body and responses."""

    model_config = FROZEN

    path: str
    http_method: HttpMethod
    summary: str = ""
    operation_id: str
    parameters: tuple[ApiParameter, ...] = ()
    request_body_schema: ApiSchema | None = None
    responses: Annotated[
        Mapping[str, ApiSchema],
        AfterValidator(_freeze),
        PlainSerializer(lambda m: dict(m)),
    ] = {}
    # Every declared status code, including those without a response body.
    status_codes: tuple[str, ...] = ()

    @field_validator("summary", mode="before")
    @classmethod
    def _blank_summary(cls, value: Any) -> Any:
        return _none_to_empty(value)

    @field_validator("http_method", mode="before")
    @classmethod
    def _upper_method(cls, value: Any) -> Any:
        if isinstance(value, str) and not isinstance(value, HttpMethod):
            return value.upper()
        return value

    @field_validator("operation_id")
    @classmethod
    def _check_operation_id(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("operation_id must not be blank")
        return value

    @model_validator(mode="after")
    def _check_body(self) -> "ApiEndpoint":
        if self.request_body_schema is not None and self.http_method not in BODY_METHODS:
            raise ValueError(f"{self.http_method.value} endpoints cannot carry a request body")
        return self

    @property
    def has_request_body(self) -> bool:
        return self.request_body_schema is not None

    @property
    def path_parameters(self) -> tuple[ApiParameter, ...]:
        return tuple(p for p in self.parameters if p.location is ParamLocation.PATH)

    @property
    def query_parameters(self) -> tuple[ApiParameter, ...]:
        return tuple(p for p in self.parameters if p.location is ParamLocation.QUERY)

    @property
    def has_path_parameters(self) -> bool:
        return bool(self.path_parameters)

    def __str__(self) -> str:
        return f"{self.http_method.value} {self.path} ({self.operation_id})"


class ApiContract(BaseModel):
    """Aggregate root: a fully resolved API description."""

    model_config = FROZEN

    title: str = "Unknown API"
    version: str = "1.0.0"
    description: str = ""
    base_url: str = DEFAULT_BASE_URL
    endpoints: tuple[ApiEndpoint, ...]
    schemas: Annotated[
        Mapping[str, ApiSchema],
        AfterValidator(_freeze),
        PlainSerializer(lambda m: dict(m)),
    ] = {}

    @model_validator(mode="before")
    @classmethod
    def _apply_defaults(cls, data: Any) -> Any:
        # Absent metadata falls back to the field defaults instead of None.
        if isinstance(data, dict):
            data = {k: v for k, v in data.items() if v is not None}
        return data

    @field_validator("endpoints")
    @classmethod
    def _check_endpoints(cls, value: tuple[ApiEndpoint, ...]) -> tuple[ApiEndpoint, ...]:
        if not value:
            raise ValueError("a contract needs at least one endpoint")
        return value

    @property
    def endpoint_count(self) -> int:
        return len(self.endpoints)

    @property
    def has_schemas(self) -> bool:
        return bool(self.schemas)

    def __str__(self) -> str:
        return (
            f"ApiContract(title={self.title!r}, version={self.version!r}, "
            f"base_url={self.base_url!r}, endpoints={self.endpoint_count}, "
            f"schemas={len(self.schemas)})"
        )


ApiSchema.model_rebuild()
