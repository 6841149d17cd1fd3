"""CLI entry point for specgen."""

import importlib
import importlib.util
import sys
from pathlib import Path
from typing import Any

import click

from specgen.errors import GenerationError
from specgen.generator.document import format_for, write_document
from specgen.generator.route import DocumentConfig, Route
from specgen.log import setup_logging
from specgen.settings import get_settings


def _load_object(target: str) -> Any:
    """Resolve ``module:attr`` or ``path/to/file.py:attr`` to a Python object."""
    module_ref, sep, attr = target.rpartition(":")
    if not sep or not module_ref or not attr:
        raise click.BadParameter(f"expected MODULE:ATTR or FILE.py:ATTR, got {target!r}")

    if module_ref.endswith(".py"):
        path = Path(module_ref)
        if not path.is_file():
            raise click.BadParameter(f"file not found: {path}")
        spec = importlib.util.spec_from_file_location(path.stem, path)
        module = importlib.util.module_from_spec(spec)
        sys.modules[path.stem] = module
        spec.loader.exec_module(module)
    else:
        try:
            module = importlib.import_module(module_ref)
        except ImportError as e:
            raise click.BadParameter(f"cannot import {module_ref}: {e}") from e

    try:
        return getattr(module, attr)
    except AttributeError:
        raise click.BadParameter(f"{module_ref} has no attribute {attr!r}") from None


def _load_routes(target: str) -> list[Route]:
    routes = _load_object(target)
    if callable(routes):
        routes = routes()
    return [r if isinstance(r, Route) else Route.model_validate(r) for r in routes]


def _load_config(target: str | None) -> DocumentConfig:
    if target is None:
        return DocumentConfig()
    config = _load_object(target)
    if callable(config) and not isinstance(config, DocumentConfig):
        config = config()
    return config if isinstance(config, DocumentConfig) else DocumentConfig.model_validate(config)


@click.group()
def main():
    """specgen: generate OpenAPI documents from annotated pydantic shapes."""
    pass


@main.command()
@click.argument("routes_target")
@click.option("-o", "--output", required=True, type=click.Path(path_type=Path), help="Output file for the OpenAPI document.")
@click.option("--config", "config_target", default=None, help="MODULE:ATTR of a DocumentConfig.")
@click.option("--title", default=None, help="Document title.")
@click.option("--description", default=None, help="Document description.")
@click.option("--api-version", default=None, help="Document version.")
@click.option("--bearer/--no-bearer", default=None, help="Add the bearer token security scheme.")
@click.option("--format", "fmt", default=None, type=click.Choice(["auto", "yaml", "json"]), help="Output format (auto picks by file suffix).")
@click.option("--log-level", default=None, help="Logging level.")
def generate(
    routes_target: str,
    output: Path,
    config_target: str | None,
    title: str | None,
    description: str | None,
    api_version: str | None,
    bearer: bool | None,
    fmt: str | None,
    log_level: str | None,
):
    """Generate an OpenAPI document from ROUTES_TARGET (MODULE:ATTR or FILE.py:ATTR)."""
    settings = get_settings()
    setup_logging(log_level or settings.log_level)

    routes = _load_routes(routes_target)
    click.echo(f"Loaded {len(routes)} routes from {routes_target}.")

    overrides = {
        "title": title,
        "description": description,
        "version": api_version,
        "with_bearer_token_security": bearer,
    }
    config = _load_config(config_target).model_copy(
        update={k: v for k, v in overrides.items() if v is not None}
    )

    fmt = fmt or settings.output_format
    if fmt == "auto":
        fmt = format_for(output)

    try:
        path = write_document(config, routes, output, fmt)
    except GenerationError as e:
        raise click.ClickException(str(e)) from e

    click.echo(f"OpenAPI document written to {path}")
