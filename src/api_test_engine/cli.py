"""CLI entry point for api-test-engine."""

import logging
from pathlib import Path

import click

from api_test_engine.config import EngineSettings
from api_test_engine.diagnostics import new_trace_id
from api_test_engine.errors import EngineError
from api_test_engine.generator.project import group_endpoints
from api_test_engine.parser.loader import read_spec_file
from api_test_engine.pipeline import Pipeline

logger = logging.getLogger(__name__)

EXIT_CODES = {
    "PARSE_ERROR": 3,
    "TEMPLATE_ERROR": 4,
    "GENERATION_ERROR": 5,
    "ARCHIVE_ERROR": 6,
}


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _check_upload(spec_path: Path, settings: EngineSettings) -> None:
    """Reject files the engine should not even try to parse."""
    if spec_path.suffix.lower() not in settings.allowed_extensions:
        allowed = ", ".join(settings.allowed_extensions)
        raise click.BadParameter(
            f"Unsupported file type '{spec_path.suffix}'. Expected one of: {allowed}.",
            param_hint="SPEC_PATH",
        )
    size = spec_path.stat().st_size
    if size == 0:
        raise click.BadParameter("File is empty. Please provide a valid OpenAPI spec.", param_hint="SPEC_PATH")
    if size > settings.max_spec_bytes:
        raise click.BadParameter(
            f"File is {size} bytes; the maximum allowed size is {settings.max_spec_bytes} bytes.",
            param_hint="SPEC_PATH",
        )


def _fail(error: EngineError, trace_id: str) -> None:
    """Report an engine failure and exit with its category's code."""
    if error.code == "PARSE_ERROR":
        logger.warning("[traceId=%s] %s failed: %s", trace_id, error.code, error.message)
    else:
        logger.error("[traceId=%s] %s failed: %s", trace_id, error.code, error.message, exc_info=error)
    click.echo(f"Error ({error.code}): {error.public_message} [traceId={trace_id}]", err=True)
    click.get_current_context().exit(EXIT_CODES.get(error.code, 1))


@click.group()
def main():
    """API Test Engine: turn an OpenAPI contract into a RestAssured test project."""
    pass


@main.command()
@click.argument("spec_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("-o", "--output", default=None, type=click.Path(dir_okay=False, path_type=Path), help="Output ZIP path. Defaults to <spec>-automation-tests.zip.")
@click.option("--trace-id", default=None, help="Correlation id attached to every log line.")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
def generate(spec_path: Path, output: Path | None, trace_id: str | None, verbose: bool):
    """Generate a zipped test project from an OpenAPI document."""
    _configure_logging(verbose)
    settings = EngineSettings.from_env()
    _check_upload(spec_path, settings)
    trace_id = trace_id or new_trace_id()
    output = output or Path(f"{spec_path.stem}-automation-tests.zip")

    click.echo(f"Parsing {spec_path}...")
    try:
        raw_text = read_spec_file(spec_path)
        data = Pipeline(settings=settings).run(raw_text, trace_id)
    except EngineError as e:
        _fail(e, trace_id)

    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_bytes(data)
    click.echo(f"Generated {output} ({len(data)} bytes)")


@main.command()
@click.argument("spec_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
def inspect(spec_path: Path, verbose: bool):
    """Show what the engine reads from an OpenAPI document."""
    _configure_logging(verbose)
    settings = EngineSettings.from_env()
    _check_upload(spec_path, settings)
    trace_id = new_trace_id()

    try:
        contract = Pipeline(settings=settings).translator.translate(read_spec_file(spec_path), trace_id)
    except EngineError as e:
        _fail(e, trace_id)

    click.echo(f"Title:     {contract.title}")
    click.echo(f"Version:   {contract.version}")
    click.echo(f"Base URL:  {contract.base_url}")
    click.echo(f"Found {contract.endpoint_count} endpoints, {len(contract.schemas)} schemas.")
    for resource, endpoints in group_endpoints(contract.endpoints).items():
        click.echo(f"\n[{resource}]")
        for ep in endpoints:
            click.echo(f"  {ep.http_method.value:<7} {ep.path}  ({ep.operation_id})")
