"""Click commands for ocmvector.

Options default to the ``OCMVECTOR_*`` environment configuration and
override it when given.
"""

from __future__ import annotations

import asyncio
import signal

import click

from ocmvector import __version__
from ocmvector.config import load_config
from ocmvector.errors import ConfigurationError, OCMVectorError
from ocmvector.models.config import OCMVectorConfig
from ocmvector.observability.logging import get_logger, setup_logging
from ocmvector.resolver import ComponentResolver, build_repositories


@click.group()
@click.version_option(__version__, prog_name="ocmvector")
def cli() -> None:
    """Walk OCM component trees and derive their image vectors."""


@cli.command()
@click.option("--root", "root_component", help="Root component as name:version.")
@click.option(
    "--repository",
    "repositories",
    multiple=True,
    help="Descriptor repository directory; repeat for lookup order.",
)
@click.option("--output-dir", "-o", type=click.Path(file_okay=False), help="Output directory.")
@click.option("--workers", type=click.IntRange(1, 64), help="Concurrent component fetches.")
@click.option("--original-refs/--no-original-refs", default=None, help="Emit pre-rewrite image references.")
@click.option("--debug/--no-debug", default=None, help="Also write image vectors and resources per component.")
@click.option(
    "--log-level",
    type=click.Choice(["debug", "info", "warning", "error"], case_sensitive=False),
    help="Log level.",
)
@click.option("--json-logs/--console-logs", default=True, help="Log output format.")
def resolve(
    root_component: str | None,
    repositories: tuple[str, ...],
    output_dir: str | None,
    workers: int | None,
    original_refs: bool | None,
    debug: bool | None,
    log_level: str | None,
    json_logs: bool,
) -> None:
    """Resolve the component tree of ROOT and write its artifacts."""
    try:
        config = load_config()
    except ValueError as exc:
        raise click.UsageError(str(exc)) from exc
    _apply_overrides(
        config,
        root_component=root_component,
        repositories=list(repositories),
        output_dir=output_dir,
        workers=workers,
        original_refs=original_refs,
        debug=debug,
        log_level=log_level,
    )
    if not config.ocm.root_component:
        raise click.UsageError("a root component is required (--root or OCMVECTOR_ROOT_COMPONENT)")
    if not config.ocm.repositories:
        raise click.UsageError("at least one repository is required (--repository or OCMVECTOR_REPOSITORIES)")

    setup_logging(config.log.level, json_output=json_logs)
    log = get_logger("cli")
    try:
        asyncio.run(_run(config))
    except ConfigurationError as exc:
        log.critical("fatal configuration error", error=str(exc))
        raise SystemExit(2) from exc
    except OCMVectorError as exc:
        log.error("resolution incomplete", error=str(exc))
        raise SystemExit(1) from exc


def _apply_overrides(
    config: OCMVectorConfig,
    *,
    root_component: str | None,
    repositories: list[str],
    output_dir: str | None,
    workers: int | None,
    original_refs: bool | None,
    debug: bool | None,
    log_level: str | None,
) -> None:
    if root_component:
        config.ocm.root_component = root_component
    if repositories:
        config.ocm.repositories = repositories
    if output_dir:
        config.output.directory = output_dir
    if workers is not None:
        config.walker.workers = workers
    if original_refs is not None:
        config.ocm.original_refs = original_refs
    if debug is not None:
        config.output.debug = debug
    if log_level:
        config.log.level = log_level.lower()


async def _run(config: OCMVectorConfig) -> None:
    resolver = ComponentResolver(config, build_repositories(config.ocm.repositories))
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, resolver.stop)
    try:
        await resolver.resolve()
    finally:
        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.remove_signal_handler(sig)
    get_logger("cli").info("component count", count=resolver.graph.component_count())
