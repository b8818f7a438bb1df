"""Engine settings.

Defaults match the layout of the generated RestAssured project. Every value
can be overridden through an ``API_TEST_ENGINE_*`` environment variable.
"""

import os

from pydantic import BaseModel, field_validator

ENV_PREFIX = "API_TEST_ENGINE_"
DEFAULT_BASE_URL = "http://localhost:8080"


class EngineSettings(BaseModel):
    """Knobs for generation and for the CLI's input checks."""

    base_package: str = "com.automation.tests"
    group_id: str = "com.automation"
    project_suffix: str = "-tests"
    default_base_url: str = DEFAULT_BASE_URL
    max_spec_bytes: int = 10 * 1024 * 1024
    allowed_extensions: tuple[str, ...] = (".yaml", ".yml", ".json")

    model_config = {"frozen": True}

    @field_validator("base_package")
    @classmethod
    def _check_package(cls, value: str) -> str:
        parts = value.split(".")
        if not all(p.isidentifier() for p in parts):
            raise ValueError(f"not a valid Java package name: {value!r}")
        return value

    @property
    def base_path(self) -> str:
        """Source directory of the base package, e.g. ``com/automation/tests``."""
        return self.base_package.replace(".", "/")

    @classmethod
    def from_env(cls) -> "EngineSettings":
        """Build settings from the environment, falling back to defaults."""
        overrides: dict = {}
        for field in ("base_package", "group_id", "project_suffix", "default_base_url"):
            value = os.getenv(ENV_PREFIX + field.upper())
            if value:
                overrides[field] = value
        max_bytes = os.getenv(ENV_PREFIX + "MAX_SPEC_BYTES")
        if max_bytes:
            overrides["max_spec_bytes"] = int(max_bytes)
        extensions = os.getenv(ENV_PREFIX + "ALLOWED_EXTENSIONS")
        if extensions:
            overrides["allowed_extensions"] = tuple(
                e.strip().lower() for e in extensions.split(",") if e.strip()
            )
        return cls(**overrides)
