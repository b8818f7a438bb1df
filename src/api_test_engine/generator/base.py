"""Virtual file tree produced by the generator."""

from pydantic import BaseModel, ConfigDict, field_validator


class GeneratedFile(BaseModel):
    """One output file, addressed by a forward-slash path relative to the project root."""

    model_config = ConfigDict(frozen=True)

    relative_path: str
    content: str = ""

    @field_validator("relative_path")
    @classmethod
    def _check_path(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("relative_path must not be blank")
        if "\\" in value:
            raise ValueError(f"relative_path must use forward slashes: {value!r}")
        if value.startswith("/"):
            raise ValueError(f"relative_path must be relative: {value!r}")
        return value

    def __str__(self) -> str:
        return f"GeneratedFile({self.relative_path!r}, {len(self.content)} chars)"


class GeneratedProject(BaseModel):
    """Named, ordered set of generated files."""

    model_config = ConfigDict(frozen=True)

    project_name: str
    files: tuple[GeneratedFile, ...]

    @field_validator("project_name")
    @classmethod
    def _check_name(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("project_name must not be blank")
        return value

    @field_validator("files")
    @classmethod
    def _check_files(cls, value: tuple[GeneratedFile, ...]) -> tuple[GeneratedFile, ...]:
        if not value:
            raise ValueError("a generated project needs at least one file")
        return value

    @property
    def file_count(self) -> int:
        return len(self.files)

    @property
    def paths(self) -> list[str]:
        return [f.relative_path for f in self.files]

    def get(self, relative_path: str) -> GeneratedFile | None:
        """Look up a file by its relative path."""
        return next((f for f in self.files if f.relative_path == relative_path), None)

    def __str__(self) -> str:
        return f"GeneratedProject(name={self.project_name!r}, files={self.file_count})"
