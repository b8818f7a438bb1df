"""Template rendering over Jinja2 with an explicit compiled-template cache."""

import logging
import threading
from enum import Enum
from pathlib import Path
from typing import Callable

import jinja2

from api_test_engine.errors import TemplateFailure

from .context import RenderContext

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).parent.parent / "templates"


class TemplateId(str, Enum):
    PROJECT_DESCRIPTOR = "pom.xml.j2"
    SUITE_CONFIGURATION = "testng.xml.j2"
    BASE_FIXTURE = "BaseTest.java.j2"
    DATA_MODEL = "Model.java.j2"
    TEST_CLASS = "ApiTest.java.j2"


class TemplateCache:
    """Compile-on-first-use cache of templates, safe to share between threads.

    Two threads asking for the same uncompiled template may both compile it;
    the first result stored wins and the entry is never replaced afterwards.
    """

    def __init__(self):
        self._templates: dict[str, jinja2.Template] = {}
        self._lock = threading.Lock()

    def get_or_compile(self, name: str, compile_fn: Callable[[str], jinja2.Template]) -> jinja2.Template:
        with self._lock:
            cached = self._templates.get(name)
        if cached is not None:
            return cached
        logger.debug("Compiling template for first time: %s", name)
        compiled = compile_fn(name)
        with self._lock:
            return self._templates.setdefault(name, compiled)

    def __contains__(self, name: str) -> bool:
        with self._lock:
            return name in self._templates

    def __len__(self) -> int:
        with self._lock:
            return len(self._templates)


def java_string(value: object) -> str:
    """Escape text for use inside a Java string literal."""
    text = "" if value is None else str(value)
    return (
        text.replace("\\", "\\\\")
        .replace('"', '\\"')
        .replace("\n", "\\n")
        .replace("\r", "\\r")
        .replace("\t", "\\t")
    )


def javadoc(value: object) -> str:
    """Flatten text so it can sit on one line of a Javadoc comment."""
    text = " ".join(("" if value is None else str(value)).split())
    return text.replace("*/", "*&#47;")


class TemplateRenderer:
    """Renders named templates against typed contexts."""

    def __init__(self, template_dir: Path | None = None, cache: TemplateCache | None = None):
        self.template_dir = template_dir or TEMPLATE_DIR
        self.cache = cache if cache is not None else TemplateCache()
        self.env = jinja2.Environment(
            loader=jinja2.FileSystemLoader(str(self.template_dir)),
            autoescape=jinja2.select_autoescape(
                enabled_extensions=("xml.j2",), default_for_string=False, default=False
            ),
            undefined=jinja2.StrictUndefined,
            keep_trailing_newline=True,
            trim_blocks=True,
            lstrip_blocks=True,
            # Compiled templates live in self.cache only.
            cache_size=0,
        )
        self.env.filters["java_string"] = java_string
        self.env.filters["javadoc"] = javadoc

    def render(self, template_id: TemplateId | str, context: RenderContext) -> str:
        """Render a template with the fields of ``context``."""
        name = template_id.value if isinstance(template_id, TemplateId) else template_id
        logger.debug("Rendering template: %s", name)
        template = self._compiled(name)
        try:
            rendered = template.render(**context.model_dump())
        except jinja2.TemplateError as e:
            logger.error("Failed to render template '%s': %s", name, e)
            raise TemplateFailure(f"Failed to render template '{name}': {e}", e) from e
        logger.debug("Template '%s' rendered successfully | outputLength=%d chars", name, len(rendered))
        return rendered

    def _compiled(self, name: str) -> jinja2.Template:
        try:
            return self.cache.get_or_compile(name, self.env.get_template)
        except jinja2.TemplateNotFound as e:
            logger.error("Template '%s' not found in %s", name, self.template_dir)
            raise TemplateFailure(
                f"Template '{name}' could not be loaded. Ensure the file exists in {self.template_dir}.", e
            ) from e
        except jinja2.TemplateSyntaxError as e:
            logger.error("Template '%s' has a syntax error at line %s: %s", name, e.lineno, e.message)
            raise TemplateFailure(f"Template '{name}' could not be compiled: {e.message}", e) from e
