"""Typed rendering contexts, one per template.

Each template receives exactly the fields of its context model, so a missing
or misspelled field fails when the context is built rather than at render time.
"""

from pydantic import BaseModel, ConfigDict

from api_test_engine.parser.base import ResolvedType

JAVA_TYPES: dict[ResolvedType, str] = {
    ResolvedType.STRING: "String",
    ResolvedType.INTEGER: "Integer",
    ResolvedType.LONG: "Long",
    ResolvedType.FLOAT: "Float",
    ResolvedType.DOUBLE: "Double",
    ResolvedType.BOOLEAN: "Boolean",
    ResolvedType.LIST: "List<Object>",
    ResolvedType.OBJECT: "Object",
}

PLACEHOLDERS: dict[ResolvedType, str] = {
    ResolvedType.STRING: '"test-value"',
    ResolvedType.INTEGER: "1",
    ResolvedType.LONG: "1L",
    ResolvedType.FLOAT: "1.0f",
    ResolvedType.DOUBLE: "1.0",
    ResolvedType.BOOLEAN: "true",
}


def java_type(resolved: ResolvedType) -> str:
    return JAVA_TYPES.get(resolved, "Object")


def placeholder_literal(resolved: ResolvedType) -> str:
    """Java literal used as a sample value for a parameter of the given type."""
    return PLACEHOLDERS.get(resolved, "null")


class RenderContext(BaseModel):
    model_config = ConfigDict(frozen=True)


class ProjectDescriptorContext(RenderContext):
    project_name: str
    group_id: str
    artifact_id: str
    api_title: str
    api_version: str
    api_description: str = ""


class SuiteContext(RenderContext):
    suite_name: str
    test_name: str
    test_classes: list[str]


class BaseFixtureContext(RenderContext):
    package_name: str
    base_url: str
    api_title: str
    api_version: str


class FieldContext(RenderContext):
    name: str
    field_name: str
    type: str
    capitalised: str
    description: str = ""


class DataModelContext(RenderContext):
    package_name: str
    class_name: str
    schema_name: str
    description: str = ""
    fields: list[FieldContext]
    uses_list: bool = False


class ParamContext(RenderContext):
    name: str
    type: str
    placeholder: str


class ApiTestMethodContext(RenderContext):
    method_name: str
    http_method: str
    path: str
    summary: str = ""
    has_body: bool = False
    path_params: list[ParamContext] = []
    has_path_params: bool = False
    query_params: list[ParamContext] = []
    has_query_params: bool = False
    expected_status: str = "200"


class ApiTestContext(RenderContext):
    package_name: str
    base_package: str
    class_name: str
    resource_name: str
    base_url: str
    methods: list[ApiTestMethodContext]
