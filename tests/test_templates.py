import threading

import pytest
from pydantic import ValidationError

from api_test_engine.errors import TemplateFailure
from api_test_engine.generator.context import (
    ParamContext,
    RenderContext,
    SuiteContext,
    java_type,
    placeholder_literal,
)
from api_test_engine.generator.templates import (
    TemplateCache,
    TemplateId,
    TemplateRenderer,
    java_string,
    javadoc,
)
from api_test_engine.parser.base import ResolvedType


class GreetingContext(RenderContext):
    name: str


@pytest.fixture
def template_dir(tmp_path):
    (tmp_path / "greeting.txt.j2").write_text("Hello {{ name }}!\n")
    (tmp_path / "broken.txt.j2").write_text("{% for x in %}\n")
    (tmp_path / "needs_more.txt.j2").write_text("{{ name }} {{ surname }}\n")
    return tmp_path


class TestTemplateCache:
    def test_compiles_once(self):
        cache = TemplateCache()
        calls = []

        def compile_fn(name):
            calls.append(name)
            return object()

        first = cache.get_or_compile("a", compile_fn)
        second = cache.get_or_compile("a", compile_fn)
        assert first is second
        assert calls == ["a"]
        assert "a" in cache
        assert len(cache) == 1

    def test_concurrent_callers_share_one_entry(self):
        cache = TemplateCache()
        results = []
        barrier = threading.Barrier(8)

        def worker():
            barrier.wait()
            results.append(cache.get_or_compile("shared", lambda name: object()))

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert len(results) == 8
        assert all(r is results[0] for r in results)
        assert len(cache) == 1


class TestTemplateRenderer:
    def test_render_custom_template(self, template_dir):
        renderer = TemplateRenderer(template_dir=template_dir)
        assert renderer.render("greeting.txt.j2", GreetingContext(name="Ada")) == "Hello Ada!\n"

    def test_uses_injected_cache(self, template_dir):
        cache = TemplateCache()
        renderer = TemplateRenderer(template_dir=template_dir, cache=cache)
        renderer.render("greeting.txt.j2", GreetingContext(name="a"))
        renderer.render("greeting.txt.j2", GreetingContext(name="b"))
        assert "greeting.txt.j2" in cache
        assert len(cache) == 1

    def test_missing_template(self, template_dir):
        renderer = TemplateRenderer(template_dir=template_dir)
        with pytest.raises(TemplateFailure, match="could not be loaded") as exc_info:
            renderer.render("absent.j2", GreetingContext(name="x"))
        assert exc_info.value.code == "TEMPLATE_ERROR"

    def test_syntax_error(self, template_dir):
        renderer = TemplateRenderer(template_dir=template_dir)
        with pytest.raises(TemplateFailure, match="could not be compiled"):
            renderer.render("broken.txt.j2", GreetingContext(name="x"))

    def test_undefined_variable(self, template_dir):
        renderer = TemplateRenderer(template_dir=template_dir)
        with pytest.raises(TemplateFailure, match="surname"):
            renderer.render("needs_more.txt.j2", GreetingContext(name="x"))

    def test_bundled_suite_template(self):
        renderer = TemplateRenderer()
        xml = renderer.render(
            TemplateId.SUITE_CONFIGURATION,
            SuiteContext(suite_name="A & B", test_name="T", test_classes=["com.x.UsersApiTest"]),
        )
        assert '<suite name="A &amp; B"' in xml
        assert '<class name="com.x.UsersApiTest"/>' in xml


class TestFilters:
    def test_java_string(self):
        assert java_string('say "hi"\\now\n') == 'say \\"hi\\"\\\\now\\n'

    def test_java_string_none(self):
        assert java_string(None) == ""

    def test_javadoc_flattens_and_closes_safely(self):
        assert javadoc("multi\n  line */ text") == "multi line *&#47; text"


class TestJavaTypes:
    @pytest.mark.parametrize(
        "resolved, java, literal",
        [
            (ResolvedType.STRING, "String", '"test-value"'),
            (ResolvedType.INTEGER, "Integer", "1"),
            (ResolvedType.LONG, "Long", "1L"),
            (ResolvedType.FLOAT, "Float", "1.0f"),
            (ResolvedType.DOUBLE, "Double", "1.0"),
            (ResolvedType.BOOLEAN, "Boolean", "true"),
            (ResolvedType.LIST, "List<Object>", "null"),
            (ResolvedType.OBJECT, "Object", "null"),
        ],
    )
    def test_mapping(self, resolved, java, literal):
        assert java_type(resolved) == java
        assert placeholder_literal(resolved) == literal

    def test_param_context_is_frozen(self):
        param = ParamContext(name="id", type="Long", placeholder="1L")
        with pytest.raises(ValidationError):
            param.name = "other"
