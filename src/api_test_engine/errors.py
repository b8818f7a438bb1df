"""Error taxonomy shared by every pipeline stage.

Each stage raises its own category and lets it propagate unchanged; the
boundary (the CLI) decides how a category is presented to the caller.
"""


class EngineError(Exception):
    """Root of all failures raised by the engine."""

    code = "ENGINE_ERROR"

    def __init__(self, message: str, cause: BaseException | None = None):
        super().__init__(message)
        self.message = message
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause

    @property
    def public_message(self) -> str:
        """Message that is safe to show to whoever supplied the input."""
        return self.message


class ParseFailure(EngineError):
    """The contract document is unreadable, of the wrong dialect, or incomplete."""

    code = "PARSE_ERROR"


class TemplateFailure(EngineError):
    """A template could not be located or failed to render."""

    code = "TEMPLATE_ERROR"

    @property
    def public_message(self) -> str:
        return "Failed to render project template."


class GenerationFailure(EngineError):
    """The generator produced no files or an inconsistent file set."""

    code = "GENERATION_ERROR"

    @property
    def public_message(self) -> str:
        return "Failed to generate project. Please try again."


class ArchiveFailure(EngineError):
    """The generated project could not be written to an archive."""

    code = "ARCHIVE_ERROR"

    @property
    def public_message(self) -> str:
        return "Failed to package the generated project."
