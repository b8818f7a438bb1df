import pytest
from pydantic import ValidationError

from api_test_engine.generator.base import GeneratedFile, GeneratedProject
from api_test_engine.parser.base import (
    ApiContract,
    ApiEndpoint,
    ApiParameter,
    ApiSchema,
    HttpMethod,
    ParamLocation,
    ResolvedType,
    SchemaKind,
)


def _ep(method="GET", path="/users", **kwargs):
    return ApiEndpoint(http_method=method, path=path, operation_id=kwargs.pop("operation_id", "op"), **kwargs)


class TestApiParameter:
    def test_create_query_param(self):
        p = ApiParameter(name="limit", location="query", resolved_type=ResolvedType.INTEGER)
        assert p.location is ParamLocation.QUERY
        assert p.required is False
        assert p.description == ""

    def test_path_param_is_always_required(self):
        p = ApiParameter(name="id", location="path", required=False)
        assert p.required is True

    def test_path_param_enum_is_required(self):
        p = ApiParameter(name="id", location=ParamLocation.PATH)
        assert p.required is True

    def test_location_is_case_insensitive(self):
        assert ApiParameter(name="X-Trace", location="HEADER").location is ParamLocation.HEADER

    def test_blank_name_rejected(self):
        with pytest.raises(ValidationError):
            ApiParameter(name="  ", location="query")

    def test_none_description_becomes_empty(self):
        assert ApiParameter(name="q", description=None).description == ""


class TestApiSchema:
    def test_array_requires_item_schema(self):
        with pytest.raises(ValidationError):
            ApiSchema(name="tags", kind=SchemaKind.ARRAY, resolved_type=ResolvedType.LIST)

    def test_item_schema_only_for_arrays(self):
        item = ApiSchema(name="x", kind=SchemaKind.STRING, resolved_type=ResolvedType.STRING)
        with pytest.raises(ValidationError):
            ApiSchema(name="x", kind=SchemaKind.OBJECT, item_schema=item)

    def test_properties_only_for_objects(self):
        prop = ApiSchema(name="a", kind=SchemaKind.STRING, resolved_type=ResolvedType.STRING)
        with pytest.raises(ValidationError):
            ApiSchema(name="x", kind=SchemaKind.STRING, properties={"a": prop})

    def test_is_object_needs_properties(self):
        assert ApiSchema(name="Empty").is_object is False
        prop = ApiSchema(name="a", kind=SchemaKind.STRING, resolved_type=ResolvedType.STRING)
        assert ApiSchema(name="Full", properties={"a": prop}).is_object is True

    def test_properties_are_read_only_and_ordered(self):
        props = {
            name: ApiSchema(name=name, kind=SchemaKind.STRING, resolved_type=ResolvedType.STRING)
            for name in ("z", "a", "m")
        }
        schema = ApiSchema(name="S", properties=props)
        assert list(schema.properties) == ["z", "a", "m"]
        with pytest.raises(TypeError):
            schema.properties["b"] = props["a"]
        props.clear()
        assert len(schema.properties) == 3


class TestApiEndpoint:
    def test_create_minimal_endpoint(self):
        ep = _ep()
        assert ep.http_method is HttpMethod.GET
        assert ep.parameters == ()
        assert ep.has_request_body is False
        assert ep.has_path_parameters is False

    def test_method_is_upper_cased(self):
        assert _ep(method="patch").http_method is HttpMethod.PATCH

    def test_blank_operation_id_rejected(self):
        with pytest.raises(ValidationError):
            _ep(operation_id=" ")

    def test_get_cannot_carry_body(self):
        with pytest.raises(ValidationError):
            _ep(method="GET", request_body_schema=ApiSchema(name="RequestBody"))

    def test_post_with_body(self):
        ep = _ep(method="POST", request_body_schema=ApiSchema(name="RequestBody"))
        assert ep.has_request_body is True

    def test_parameter_queries(self):
        ep = _ep(
            path="/users/{id}",
            parameters=[
                ApiParameter(name="id", location="path"),
                ApiParameter(name="q", location="query"),
                ApiParameter(name="X-Key", location="header"),
            ],
        )
        assert ep.has_path_parameters is True
        assert [p.name for p in ep.path_parameters] == ["id"]
        assert [p.name for p in ep.query_parameters] == ["q"]

    def test_frozen(self):
        ep = _ep()
        with pytest.raises(ValidationError):
            ep.path = "/other"


class TestApiContract:
    def test_defaults_for_missing_metadata(self):
        contract = ApiContract(title=None, version=None, description=None, base_url=None, endpoints=[_ep()])
        assert contract.title == "Unknown API"
        assert contract.version == "1.0.0"
        assert contract.description == ""
        assert contract.base_url == "http://localhost:8080"
        assert contract.has_schemas is False
        assert contract.endpoint_count == 1

    def test_empty_endpoints_rejected(self):
        with pytest.raises(ValidationError):
            ApiContract(title="Empty", endpoints=[])

    def test_schemas_are_read_only(self):
        contract = ApiContract(endpoints=[_ep()], schemas={"A": ApiSchema(name="A")})
        with pytest.raises(TypeError):
            contract.schemas["B"] = ApiSchema(name="B")

    def test_structural_equality(self):
        a = ApiContract(title="T", endpoints=[_ep()], schemas={"A": ApiSchema(name="A")})
        b = ApiContract(title="T", endpoints=[_ep()], schemas={"A": ApiSchema(name="A")})
        assert a == b


class TestGeneratedProject:
    def test_blank_path_rejected(self):
        with pytest.raises(ValidationError):
            GeneratedFile(relative_path="   ", content="")

    def test_backslash_path_rejected(self):
        with pytest.raises(ValidationError):
            GeneratedFile(relative_path="src\\Main.java", content="")

    def test_empty_content_allowed(self):
        assert GeneratedFile(relative_path="empty.txt").content == ""

    def test_project_needs_files(self):
        with pytest.raises(ValidationError):
            GeneratedProject(project_name="p", files=[])

    def test_project_needs_name(self):
        with pytest.raises(ValidationError):
            GeneratedProject(project_name="", files=[GeneratedFile(relative_path="a.txt")])

    def test_lookup(self):
        project = GeneratedProject(
            project_name="p",
            files=[GeneratedFile(relative_path="a.txt", content="A"), GeneratedFile(relative_path="b/c.txt")],
        )
        assert project.file_count == 2
        assert project.paths == ["a.txt", "b/c.txt"]
        assert project.get("a.txt").content == "A"
        assert project.get("missing") is None
