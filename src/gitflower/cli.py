"""CLI for GitFlower."""

import json
import sys

import click
import structlog
import yaml
from pydantic import ValidationError

from gitflower.config.logging import configure_logging
from gitflower.config.settings import Settings, parse_setting, write_config_value
from gitflower.core.exceptions import ConfigurationError, GitFlowerError
from gitflower.core.models.repository import RepositoryRecord
from gitflower.git.url_resolver import CloneURLResolver
from gitflower.services.repositories import RepositoryService
from gitflower.utils.formatting import format_age, format_size

logger = structlog.get_logger(__name__)


def _service(settings: Settings) -> RepositoryService:
    return RepositoryService(settings.scan_config)


def _fail(exc: GitFlowerError) -> None:
    click.echo(f"Error: {exc.message}", err=True)
    sys.exit(1)


def _describe_errors(exc: ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}" for error in exc.errors()
    )


def _records_as_data(records: list[RepositoryRecord]) -> list[dict]:
    return [record.model_dump(mode="json", by_alias=True) for record in records]


def _print_table(records: list[RepositoryRecord]) -> None:
    if not records:
        click.echo("No repositories found")
        return

    width = max(len("PATH"), *(len(r.relative_path) for r in records))
    click.echo(f"{'PATH':<{width}}  BRANCHES  MR  {'SIZE':>9}  {'LAST UPDATE':<14}  STATUS")
    for record in records:
        status = "OK" if record.is_valid else f"ERROR: {record.error}"
        click.echo(
            f"{record.relative_path:<{width}}  {record.branch_count:>8}  {record.mr_count:>2}  "
            f"{format_size(record.size):>9}  {format_age(record.last_update):<14}  {status}"
        )


@click.group()
@click.option("--config", "-c", "config_file", help="Config file path")
@click.option("--repos", "-r", "repos_directory", help="Repositories directory")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.pass_context
def cli(ctx: click.Context, config_file: str | None, repos_directory: str | None, verbose: bool) -> None:
    """GitFlower: a tree of bare git repositories."""
    overrides = {"config_file": config_file, "repos_directory": repos_directory}
    if verbose:
        overrides["log_level"] = "DEBUG"
    try:
        settings = Settings(**{k: v for k, v in overrides.items() if v is not None})
    except GitFlowerError as exc:
        _fail(exc)
    except ValidationError as exc:
        _fail(ConfigurationError(f"invalid configuration: {_describe_errors(exc)}"))

    configure_logging(log_level=settings.log_level, json_logs=settings.json_logs)
    ctx.obj = settings


@cli.command(name="list")
@click.option(
    "--format",
    "-f",
    "output_format",
    type=click.Choice(["table", "json", "yaml"]),
    default="table",
    help="Output format",
)
@click.option("--warnings", "-w", "show_warnings", is_flag=True, help="Show scan warnings")
@click.pass_obj
def list_repositories(settings: Settings, output_format: str, show_warnings: bool) -> None:
    """List all repositories under the repositories directory."""
    try:
        result = _service(settings).scan()
    except GitFlowerError as exc:
        _fail(exc)

    if show_warnings and result.warnings:
        click.echo("Warnings:", err=True)
        for warning in result.warnings:
            click.echo(f"  - {warning}", err=True)
        click.echo(err=True)

    if output_format == "json":
        click.echo(json.dumps(_records_as_data(result.repositories), indent=2))
    elif output_format == "yaml":
        click.echo(yaml.safe_dump(_records_as_data(result.repositories), sort_keys=False), nl=False)
    else:
        _print_table(result.repositories)


@cli.command()
@click.argument("path")
@click.pass_obj
def create(settings: Settings, path: str) -> None:
    """Create a new bare repository.

    PATH may include organization folders, e.g. myorg/myproject.git.
    The .git suffix is added when missing.
    """
    try:
        record = _service(settings).create(path)
    except GitFlowerError as exc:
        _fail(exc)

    resolver = CloneURLResolver(settings.repos_path, settings.clone_url_template)
    click.echo(f"Created repository: {record.relative_path}")
    click.echo("\nTo push to this repository:")
    click.echo(f"  git remote add origin {resolver.resolve(record.relative_path)}")
    click.echo(f"  git push -u origin {settings.default_branch}")


@cli.command()
@click.argument("key", required=False)
@click.argument("value", required=False)
@click.pass_obj
def config(settings: Settings, key: str | None, value: str | None) -> None:
    """Show the effective configuration, a single KEY, or set KEY to VALUE.

    Setting a value writes it to the config file, e.g.
    `gitflower config repos.directory ~/repos`.
    """
    values = settings.model_dump(mode="json")
    if key is None:
        click.echo(yaml.safe_dump(values, sort_keys=False), nl=False)
        return

    normalized = key.replace(".", "_").replace("-", "_").lower()
    if normalized not in values:
        click.echo(f"Error: unknown config key: {key}", err=True)
        sys.exit(1)

    if value is None:
        current = values[normalized]
        click.echo("" if current is None else current)
        return

    path = settings.config_path
    try:
        write_config_value(path, normalized, parse_setting(normalized, value))
    except GitFlowerError as exc:
        _fail(exc)
    logger.info("Saved setting", key=normalized, config_file=str(path))
    click.echo(f"Set {normalized} = {value}")


@cli.command()
@click.option("--host", "-h", default=None, help="Address to bind (default from settings)")
@click.option("--port", "-p", type=int, default=None, help="Port to listen on")
@click.pass_obj
def web(settings: Settings, host: str | None, port: int | None) -> None:
    """Start the GitFlower web server."""
    import uvicorn

    from gitflower.api.main import create_app

    host = host or settings.web_host
    port = port or settings.web_port
    logger.info("Starting web server", host=host, port=port)
    uvicorn.run(create_app(settings), host=host, port=port)


if __name__ == "__main__":
    cli()
