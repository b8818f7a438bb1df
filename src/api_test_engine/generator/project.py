"""RestAssured + TestNG project generator.

Lays out a Maven project for a contract:

    pom.xml
    testng.xml
    src/test/java/<base>/base/BaseTest.java
    src/test/java/<base>/model/<Schema>.java         one per object schema
    src/test/java/<base>/tests/<Resource>ApiTest.java  one per resource group
"""

import logging
from typing import Sequence

from api_test_engine.config import EngineSettings
from api_test_engine.diagnostics import new_trace_id, trace_logger
from api_test_engine.errors import GenerationFailure
from api_test_engine.parser.base import ApiContract, ApiEndpoint, ApiParameter, ApiSchema, ResolvedType

from .base import GeneratedFile, GeneratedProject
from .context import (
    ApiTestContext,
    ApiTestMethodContext,
    BaseFixtureContext,
    DataModelContext,
    FieldContext,
    ParamContext,
    ProjectDescriptorContext,
    SuiteContext,
    java_type,
    placeholder_literal,
)
from .naming import (
    capitalise,
    deduplicate,
    method_name_for,
    resource_group,
    to_class_name,
    to_field_name,
    to_project_name,
)
from .templates import TemplateId, TemplateRenderer
from .validator import validate_files

logger = logging.getLogger(__name__)

SOURCE_ROOT = "src/test/java"


def group_endpoints(endpoints: Sequence[ApiEndpoint]) -> dict[str, list[ApiEndpoint]]:
    """Group endpoints by resource, keeping groups in first-seen order."""
    groups: dict[str, list[ApiEndpoint]] = {}
    for endpoint in endpoints:
        groups.setdefault(resource_group(endpoint.path), []).append(endpoint)
    return groups


def expected_status(endpoint: ApiEndpoint) -> str:
    """Success status a generated test asserts: 201 when declared, otherwise 200."""
    declared = set(endpoint.status_codes) | set(endpoint.responses)
    return "201" if "201" in declared else "200"


def assemble_project(project_name: str, files: Sequence[GeneratedFile]) -> GeneratedProject:
    """Validate a file set and wrap it into a project."""
    if not files:
        raise GenerationFailure(
            f"Project generation produced zero files for '{project_name}'. "
            "Ensure the contract has at least one endpoint."
        )
    errors = validate_files(files)
    if errors:
        details = "; ".join(f"{path}: {msg}" for path, msg in errors.items())
        raise GenerationFailure(f"Generated project '{project_name}' is inconsistent: {details}")
    return GeneratedProject(project_name=project_name, files=tuple(files))


class ProjectGenerator:
    """Turns a contract into a RestAssured/TestNG Maven project."""

    def __init__(self, renderer: TemplateRenderer | None = None, settings: EngineSettings | None = None):
        self.renderer = renderer or TemplateRenderer()
        self.settings = settings or EngineSettings()

    @property
    def base_package(self) -> str:
        return f"{self.settings.base_package}.base"

    @property
    def model_package(self) -> str:
        return f"{self.settings.base_package}.model"

    @property
    def tests_package(self) -> str:
        return f"{self.settings.base_package}.tests"

    def _source_path(self, package: str, class_name: str) -> str:
        return f"{SOURCE_ROOT}/{package.replace('.', '/')}/{class_name}.java"

    # -- orchestration --------------------------------------------------------

    def generate(self, contract: ApiContract, trace_id: str | None = None) -> GeneratedProject:
        """Generate every file of the project for ``contract``."""
        log = trace_logger(logger, trace_id or new_trace_id())
        log.info("Starting project generation | %s", contract)

        project_name = to_project_name(contract.title, self.settings.project_suffix)
        groups = group_endpoints(contract.endpoints)
        log.debug("Endpoint groups: %s", list(groups))

        files: list[GeneratedFile] = []
        log.debug("Generating pom.xml")
        files.append(self._render_project_descriptor(contract, project_name))
        log.debug("Generating testng.xml")
        files.append(self._render_suite(contract, list(groups)))
        log.debug("Generating BaseTest.java")
        files.append(self._render_base_fixture(contract))

        object_schemas = {name: s for name, s in contract.schemas.items() if s.is_object}
        if object_schemas:
            log.debug("Generating %d model class(es)", len(object_schemas))
        for schema_name, schema in object_schemas.items():
            files.append(self._render_model(schema_name, schema))

        for resource, endpoints in groups.items():
            log.debug("Generating test class for resource '%s' (%d endpoint(s))", resource, len(endpoints))
            files.append(self._render_test_class(resource, endpoints, contract.base_url))

        project = assemble_project(project_name, files)
        log.info("Project generation complete | %s", project)
        return project

    # -- fixed files ----------------------------------------------------------

    def _render_project_descriptor(self, contract: ApiContract, project_name: str) -> GeneratedFile:
        context = ProjectDescriptorContext(
            project_name=project_name,
            group_id=self.settings.group_id,
            artifact_id=project_name,
            api_title=contract.title,
            api_version=contract.version,
            api_description=contract.description,
        )
        return GeneratedFile(
            relative_path="pom.xml",
            content=self.renderer.render(TemplateId.PROJECT_DESCRIPTOR, context),
        )

    def _render_suite(self, contract: ApiContract, resources: list[str]) -> GeneratedFile:
        context = SuiteContext(
            suite_name=f"{contract.title} API Test Suite",
            test_name=f"{contract.title} Tests",
            test_classes=[f"{self.tests_package}.{self._test_class_name(r)}" for r in resources],
        )
        return GeneratedFile(
            relative_path="testng.xml",
            content=self.renderer.render(TemplateId.SUITE_CONFIGURATION, context),
        )

    def _render_base_fixture(self, contract: ApiContract) -> GeneratedFile:
        context = BaseFixtureContext(
            package_name=self.base_package,
            base_url=contract.base_url,
            api_title=contract.title,
            api_version=contract.version,
        )
        return GeneratedFile(
            relative_path=self._source_path(self.base_package, "BaseTest"),
            content=self.renderer.render(TemplateId.BASE_FIXTURE, context),
        )

    # -- per-schema / per-resource files --------------------------------------

    def _render_model(self, schema_name: str, schema: ApiSchema) -> GeneratedFile:
        class_name = to_class_name(schema_name)
        props = list(schema.properties.items())
        field_names = deduplicate([to_field_name(name) for name, _ in props])
        fields = [
            FieldContext(
                name=name,
                field_name=field_name,
                type=java_type(prop.resolved_type),
                capitalised=capitalise(field_name),
                description=prop.description,
            )
            for (name, prop), field_name in zip(props, field_names)
        ]
        context = DataModelContext(
            package_name=self.model_package,
            class_name=class_name,
            schema_name=schema_name,
            description=schema.description,
            fields=fields,
            uses_list=any(prop.resolved_type is ResolvedType.LIST for _, prop in props),
        )
        return GeneratedFile(
            relative_path=self._source_path(self.model_package, class_name),
            content=self.renderer.render(TemplateId.DATA_MODEL, context),
        )

    def _test_class_name(self, resource: str) -> str:
        return to_class_name(resource) + "ApiTest"

    def _render_test_class(self, resource: str, endpoints: list[ApiEndpoint], base_url: str) -> GeneratedFile:
        class_name = self._test_class_name(resource)
        method_names = deduplicate([method_name_for(e.operation_id) for e in endpoints])
        context = ApiTestContext(
            package_name=self.tests_package,
            base_package=self.base_package,
            class_name=class_name,
            resource_name=resource,
            base_url=base_url,
            methods=[build_method_context(e, name) for e, name in zip(endpoints, method_names)],
        )
        return GeneratedFile(
            relative_path=self._source_path(self.tests_package, class_name),
            content=self.renderer.render(TemplateId.TEST_CLASS, context),
        )


def _param_context(param: ApiParameter) -> ParamContext:
    return ParamContext(
        name=param.name,
        type=java_type(param.resolved_type),
        placeholder=placeholder_literal(param.resolved_type),
    )


def build_method_context(endpoint: ApiEndpoint, method_name: str | None = None) -> ApiTestMethodContext:
    """Rendering context for the test method of one endpoint."""
    path_params = [_param_context(p) for p in endpoint.path_parameters]
    query_params = [_param_context(p) for p in endpoint.query_parameters]
    return ApiTestMethodContext(
        method_name=method_name or method_name_for(endpoint.operation_id),
        http_method=endpoint.http_method.value.lower(),
        path=endpoint.path,
        summary=endpoint.summary,
        has_body=endpoint.has_request_body,
        path_params=path_params,
        has_path_params=bool(path_params),
        query_params=query_params,
        has_query_params=bool(query_params),
        expected_status=expected_status(endpoint),
    )
