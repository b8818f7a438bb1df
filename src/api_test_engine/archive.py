"""Package a generated project into a single ZIP archive held in memory."""

import io
import logging
import zipfile

from api_test_engine.diagnostics import new_trace_id, trace_logger
from api_test_engine.errors import ArchiveFailure
from api_test_engine.generator.base import GeneratedFile, GeneratedProject

logger = logging.getLogger(__name__)

# Fixed timestamp so identical projects produce identical archives.
ENTRY_DATE_TIME = (1980, 1, 1, 0, 0, 0)
ENTRY_PERMISSIONS = 0o644 << 16


def entry_name(project_name: str, file: GeneratedFile) -> str:
    """Archive entry name for a file: ``<project>/<relative path>``."""
    return f"{project_name}/{file.relative_path}"


class Archiver:
    """Writes projects as deflated ZIP archives."""

    def __init__(self, compresslevel: int | None = None):
        self.compresslevel = compresslevel

    def archive(self, project: GeneratedProject, trace_id: str | None = None) -> bytes:
        """Serialize ``project`` and return the archive bytes."""
        log = trace_logger(logger, trace_id or new_trace_id())
        log.info(
            "Starting ZIP packaging | project='%s' | fileCount=%d",
            project.project_name, project.file_count,
        )
        buffer = io.BytesIO()
        written: set[str] = set()
        try:
            with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED, compresslevel=self.compresslevel) as zf:
                for file in project.files:
                    name = entry_name(project.project_name, file)
                    if name in written:
                        raise ArchiveFailure(f"Refusing to write duplicate archive entry '{name}'.")
                    info = zipfile.ZipInfo(name, date_time=ENTRY_DATE_TIME)
                    info.compress_type = zipfile.ZIP_DEFLATED
                    info.external_attr = ENTRY_PERMISSIONS
                    data = file.content.encode("utf-8")
                    zf.writestr(info, data, compresslevel=self.compresslevel)
                    written.add(name)
                    log.debug("Wrote ZIP entry '%s' | size=%d bytes", name, len(data))
        except ArchiveFailure:
            raise
        except (OSError, ValueError, zipfile.BadZipFile) as e:
            log.error("Failed to create ZIP archive for project '%s': %s", project.project_name, e)
            raise ArchiveFailure(
                f"Failed to create ZIP archive for project '{project.project_name}': {e}", e
            ) from e

        data = buffer.getvalue()
        log.info("ZIP packaging complete | project='%s' | zipSize=%d bytes", project.project_name, len(data))
        return data
