"""CLI for repocache."""

import sys
from pathlib import Path

import click
import structlog

from repocache.config.logging import configure_logging
from repocache.config.settings import Settings, get_settings
from repocache.core.exceptions import ConfigurationError, LockContentionError, RepoCacheError

logger = structlog.get_logger(__name__)


def _load_settings(cache_root: str | None) -> Settings:
    if cache_root:
        return Settings(cache_root=cache_root)
    return get_settings()


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.option("--cache", "cache_root", default=None, help="Cache root directory")
@click.pass_context
def cli(ctx: click.Context, verbose: bool, cache_root: str | None) -> None:
    """repocache: cached repository lists for git frontends."""
    settings = _load_settings(cache_root)
    log_level = "DEBUG" if verbose else settings.log_level
    configure_logging(log_level=log_level, json_logs=settings.is_production)
    ctx.obj = settings


@cli.command("scan-tree")
@click.argument("path")
@click.pass_obj
def scan_tree(settings: Settings, path: str) -> None:
    """Scan PATH directly and print the sorted repository list.

    The cache is not read or written.
    """
    from repocache.services.repolist import scan_and_dump

    path_obj = Path(path)
    if not path_obj.is_dir():
        click.echo(f"Error: Not a directory: {path_obj}", err=True)
        sys.exit(1)

    scan_and_dump(path, settings, sys.stdout)
    sys.stdout.flush()


cli.add_command(scan_tree, "scan-path")


@cli.command()
@click.argument("scan_root", required=False)
@click.option("--project-list", "-p", default=None, help="File listing the repositories to scan")
@click.option("--sort/--no-sort", default=False, help="Sort repositories by url")
@click.pass_obj
def resolve(settings: Settings, scan_root: str | None, project_list: str | None, sort: bool) -> None:
    """Print the repository list for SCAN_ROOT, served from the cache."""
    from repocache.services.repolist import RepoListService

    try:
        service = RepoListService(settings)
        registry = service.resolve(scan_root, project_list)
    except ConfigurationError as e:
        click.echo(f"Error: {e.message}", err=True)
        sys.exit(1)

    records = registry.sorted_by_url() if sort else list(registry)
    click.echo(f"Found {len(records)} repositories:")
    for record in records:
        line = f"  {record.url}"
        if record.description:
            line += f" - {record.first_description_line}"
        click.echo(line)


@cli.command("cache-path")
@click.argument("scan_root", required=False)
@click.option("--project-list", "-p", default=None, help="File listing the repositories to scan")
@click.pass_obj
def cache_path(settings: Settings, scan_root: str | None, project_list: str | None) -> None:
    """Print the cache file used for SCAN_ROOT."""
    from repocache.services.repolist import RepoListService

    try:
        service = RepoListService(settings)
        click.echo(service.cache_path(scan_root, project_list))
    except ConfigurationError as e:
        click.echo(f"Error: {e.message}", err=True)
        sys.exit(1)


@cli.command()
@click.argument("scan_root", required=False)
@click.option("--project-list", "-p", default=None, help="File listing the repositories to scan")
@click.pass_obj
def regenerate(settings: Settings, scan_root: str | None, project_list: str | None) -> None:
    """Regenerate the cache file for SCAN_ROOT now."""
    from repocache.services.repolist import RepoListService

    try:
        service = RepoListService(settings)
        count = service.regenerate(scan_root, project_list)
    except LockContentionError:
        click.echo("Regeneration already in progress", err=True)
        sys.exit(1)
    except RepoCacheError as e:
        click.echo(f"Error: {e.message}", err=True)
        sys.exit(1)

    click.echo(f"Cached {count} repositories")


if __name__ == "__main__":
    cli()
