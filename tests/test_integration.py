"""End-to-end: contract text in, archive bytes out."""

import io
import logging
import xml.etree.ElementTree as ET
import zipfile
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

import pytest

from api_test_engine.config import EngineSettings
from api_test_engine.diagnostics import new_trace_id, trace_logger
from api_test_engine.errors import ParseFailure
from api_test_engine.generator.templates import TemplateCache, TemplateRenderer
from api_test_engine.pipeline import Pipeline, translate_and_generate

FIXTURES = Path(__file__).parent / "fixtures"


def _entries(data):
    with zipfile.ZipFile(io.BytesIO(data)) as zf:
        return {name: zf.read(name).decode("utf-8") for name in zf.namelist()}


class TestPipeline:
    def test_petstore_archive(self):
        data = translate_and_generate((FIXTURES / "petstore.yaml").read_text())
        entries = _entries(data)
        root = "swagger-petstore-tests/"
        assert len(entries) == 9
        assert all(name.startswith(root) for name in entries)
        ET.fromstring(entries[root + "pom.xml"])
        ET.fromstring(entries[root + "testng.xml"])
        tests = entries[root + "src/test/java/com/automation/tests/tests/PetsApiTest.java"]
        assert ".statusCode(201);" in tests

    def test_minimal_archive(self):
        entries = _entries(Pipeline().run((FIXTURES / "minimal.json").read_text()))
        assert sorted(entries) == [
            "health-tests/pom.xml",
            "health-tests/src/test/java/com/automation/tests/base/BaseTest.java",
            "health-tests/src/test/java/com/automation/tests/tests/RootApiTest.java",
            "health-tests/testng.xml",
        ]
        base = entries["health-tests/src/test/java/com/automation/tests/base/BaseTest.java"]
        assert '"http://localhost:8080"' in base

    def test_settings_flow_through(self):
        settings = EngineSettings(default_base_url="http://staging:8000", project_suffix="-qa")
        entries = _entries(Pipeline(settings=settings).run((FIXTURES / "minimal.json").read_text()))
        base = entries["health-qa/src/test/java/com/automation/tests/base/BaseTest.java"]
        assert '"http://staging:8000"' in base

    def test_same_input_same_bytes(self):
        text = (FIXTURES / "petstore.yaml").read_text()
        assert translate_and_generate(text) == translate_and_generate(text)

    def test_parse_failure_propagates(self):
        with pytest.raises(ParseFailure):
            translate_and_generate("openapi: 3.0.0\n")

    def test_concurrent_runs_share_cache(self):
        cache = TemplateCache()
        pipeline = Pipeline(renderer=TemplateRenderer(cache=cache))
        text = (FIXTURES / "petstore.yaml").read_text()
        with ThreadPoolExecutor(max_workers=4) as pool:
            results = list(pool.map(lambda i: pipeline.run(text, f"trace-{i}"), range(8)))
        assert len(set(results)) == 1
        assert len(cache) == 5


class TestSettings:
    def test_defaults(self):
        settings = EngineSettings()
        assert settings.base_package == "com.automation.tests"
        assert settings.base_path == "com/automation/tests"
        assert settings.max_spec_bytes == 10 * 1024 * 1024
        assert settings.allowed_extensions == (".yaml", ".yml", ".json")

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("API_TEST_ENGINE_BASE_PACKAGE", "org.acme.api")
        monkeypatch.setenv("API_TEST_ENGINE_ALLOWED_EXTENSIONS", ".YAML, .json")
        settings = EngineSettings.from_env()
        assert settings.base_package == "org.acme.api"
        assert settings.allowed_extensions == (".yaml", ".json")
        assert settings.group_id == "com.automation"

    def test_invalid_package(self):
        with pytest.raises(ValueError):
            EngineSettings(base_package="com.1bad")


class TestDiagnostics:
    def test_trace_prefix(self, caplog):
        log = trace_logger(logging.getLogger("api_test_engine.test"), "abc")
        with caplog.at_level(logging.INFO):
            log.info("hello %s", "x")
        assert "[traceId=abc] hello x" in caplog.text

    def test_trace_ids_are_short_and_unique(self):
        ids = {new_trace_id() for _ in range(50)}
        assert len(ids) == 50
        assert all(len(i) == 12 for i in ids)

    def test_pipeline_logs_carry_trace_id(self, caplog):
        with caplog.at_level(logging.INFO, logger="api_test_engine"):
            Pipeline().run((FIXTURES / "minimal.json").read_text(), trace_id="req-42")
        messages = [r.getMessage() for r in caplog.records]
        assert any(m.startswith("[traceId=req-42] Pipeline DONE") for m in messages)
        assert any("[traceId=req-42] Translation complete" in m for m in messages)
