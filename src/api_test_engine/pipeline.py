"""End-to-end pipeline: contract text -> contract -> project -> archive bytes."""

import logging

from api_test_engine.archive import Archiver
from api_test_engine.config import EngineSettings
from api_test_engine.diagnostics import new_trace_id, trace_logger
from api_test_engine.generator.project import ProjectGenerator
from api_test_engine.generator.templates import TemplateRenderer
from api_test_engine.parser.swagger import SpecTranslator

logger = logging.getLogger(__name__)


class Pipeline:
    """Wires the translator, generator and archiver together.

    A pipeline holds no per-request state and can serve concurrent callers;
    the renderer's template cache is the only shared structure.
    """

    def __init__(
        self,
        settings: EngineSettings | None = None,
        renderer: TemplateRenderer | None = None,
    ):
        self.settings = settings or EngineSettings()
        self.translator = SpecTranslator(default_base_url=self.settings.default_base_url)
        self.generator = ProjectGenerator(renderer=renderer, settings=self.settings)
        self.archiver = Archiver()

    def run(self, raw_text: str, trace_id: str | None = None) -> bytes:
        trace_id = trace_id or new_trace_id()
        log = trace_logger(logger, trace_id)
        log.info("Pipeline START | size=%d chars", len(raw_text or ""))

        log.info("Stage 1: translating contract")
        contract = self.translator.translate(raw_text, trace_id)
        log.info("Stage 2: generating project files")
        project = self.generator.generate(contract, trace_id)
        log.info("Stage 3: packaging into ZIP")
        data = self.archiver.archive(project, trace_id)

        log.info("Pipeline DONE | zipSize=%d bytes | files=%d", len(data), project.file_count)
        return data


def translate_and_generate(raw_text: str, trace_id: str | None = None) -> bytes:
    """Run the whole pipeline with default settings."""
    return Pipeline().run(raw_text, trace_id)
