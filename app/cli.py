from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Optional

import orjson
import typer
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler

from adapters.excalidraw.repository import FileSystemExcalidrawRepository
from adapters.filesystem.json_utils import dump_json_bytes
from app.config import AppSettings, load_settings
from app.render_wiring import build_renderer
from domain.diagnostics import STRUCTURAL, Diagnostic, ValidationResult
from domain.errors import ExcalidrawRenderError
from domain.models import ExcalidrawDocument, RenderOptions
from domain.services.validate_excalidraw import validate_excalidraw

app = typer.Typer(no_args_is_help=True, help="Validate and convert .excalidraw files to PNG.")
console = Console()
err_console = Console(stderr=True)
logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
    )


@app.callback()
def main(
    ctx: typer.Context,
    config: Optional[Path] = typer.Option(None, "--config", help="YAML settings file."),
) -> None:
    try:
        settings = load_settings(config)
    except FileNotFoundError as exc:
        err_console.print(str(exc), style="red", markup=False, highlight=False)
        raise typer.Exit(code=1) from exc
    configure_logging(settings.log_level)
    ctx.obj = settings


def _synthetic_failure(got: str, expected: str, fix: str) -> ValidationResult:
    return ValidationResult.structural_failure(
        [Diagnostic(level=STRUCTURAL, path="$", got=got, expected=expected, fix=fix)]
    )


def _load_document(input_path: Path) -> tuple[Any, ValidationResult | None]:
    repository = FileSystemExcalidrawRepository()
    if not input_path.is_file():
        return None, _synthetic_failure(
            "file not found",
            "readable .excalidraw file",
            f'file "{input_path.resolve()}" does not exist. Check the path',
        )
    try:
        return repository.load_raw(input_path), None
    except orjson.JSONDecodeError as exc:
        return None, _synthetic_failure("invalid JSON", "valid JSON", f"JSON syntax error: {exc}")


def _json_text(value: Any) -> str:
    return orjson.dumps(value).decode("utf-8")


def output_result(result: ValidationResult, as_json: bool) -> None:
    if as_json:
        typer.echo(dump_json_bytes(result.to_dict()).decode("utf-8"))
        return

    for error in result.errors:
        element_info = f" ({error.element_type})" if error.element_type else ""
        console.print(
            f"ERROR [{error.level}] {error.path}{element_info}: "
            f"got {_json_text(error.got)}, expected {_json_text(error.expected)}. "
            f"Fix: {error.fix}",
            style="red",
            markup=False,
            highlight=False,
            soft_wrap=True,
        )
    for warning in result.warnings:
        console.print(
            f"WARN  [{warning.level}] {warning.path}: {warning.fix}",
            style="yellow",
            markup=False,
            highlight=False,
            soft_wrap=True,
        )

    summary = result.summary
    if result.valid:
        console.print(
            f"OK: {summary.total_elements} elements, all valid",
            style="green",
            markup=False,
            soft_wrap=True,
        )
    else:
        console.print(
            f"FAILED: {summary.error_count} error(s), {summary.warning_count} warning(s) "
            f"({summary.valid_elements}/{summary.total_elements} elements valid)",
            style="red",
            markup=False,
            soft_wrap=True,
        )


@app.command("validate")
def validate(
    input_path: Path = typer.Argument(..., help="Excalidraw file to validate."),
    as_json: bool = typer.Option(False, "--json", help="Output as JSON (for programmatic use)."),
) -> None:
    data, failure = _load_document(input_path)
    result = failure or validate_excalidraw(data)
    output_result(result, as_json)
    raise typer.Exit(code=0 if result.valid else 1)


@app.command("convert")
def convert(
    ctx: typer.Context,
    input_path: Path = typer.Argument(..., help="Excalidraw file to convert."),
    output: Path = typer.Option(..., "--output", "-o", help="Output PNG file path."),
    scale: Optional[float] = typer.Option(None, help="Export scale factor."),
    background: Optional[bool] = typer.Option(
        None, "--background/--no-background", help="Paint the scene background."
    ),
    dark_mode: Optional[bool] = typer.Option(None, "--dark-mode/--light-mode", help="Dark mode."),
    padding: Optional[float] = typer.Option(None, help="Padding in document units."),
) -> None:
    settings: AppSettings = ctx.obj or load_settings()
    overrides = {
        key: value
        for key, value in {
            "scale": scale,
            "background": background,
            "dark_mode": dark_mode,
            "padding": padding,
        }.items()
        if value is not None
    }
    try:
        options = RenderOptions.model_validate({**settings.render.model_dump(), **overrides})
    except ValidationError as exc:
        raise typer.BadParameter(str(exc)) from exc

    data, failure = _load_document(input_path)
    if failure is not None:
        err_console.print(
            f"Failed to read file: {failure.errors[0].fix}", markup=False, soft_wrap=True
        )
        raise typer.Exit(code=1)

    validation = validate_excalidraw(data)
    if validation.structural_errors:
        err_console.print("Cannot convert: file has structural errors (L1):", style="red")
        output_result(validation, False)
        raise typer.Exit(code=1)
    if validation.errors:
        err_console.print(
            f"Warning: {len(validation.errors)} element error(s), "
            "affected elements may render incorrectly",
            style="yellow",
        )

    logger.debug("Converting %s with %s", input_path, options)
    renderer = build_renderer(settings)
    try:
        png = renderer.render_document(ExcalidrawDocument.from_dict(data), options)
    except ExcalidrawRenderError as exc:
        err_console.print(f"Render failed: {exc}", style="red", markup=False)
        raise typer.Exit(code=1) from exc

    FileSystemExcalidrawRepository().save_image(png, output)
    console.print(
        f"PNG saved: {output.resolve()} ({len(png)} bytes)", markup=False, soft_wrap=True
    )


if __name__ == "__main__":
    app()
