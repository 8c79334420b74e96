"""CLI entry point: depresolve.

Subcommands:
    depresolve discover [ROOT]    # Classify dependencies found in GOPATH
    depresolve import [ROOT]      # Convert legacy tool configuration

The solver is external; neither command solves.
"""

from __future__ import annotations

import asyncio
import json
import sys
from pathlib import Path

import click
import structlog

from depresolve.core.context import Ctx
from depresolve.core.errors import DepResolveError
from depresolve.core.feedback import FeedbackEvent
from depresolve.core.logging import setup_logging
from depresolve.engines.discovery import GopathScanner, get_direct_dependencies
from depresolve.engines.importers import RootAnalyzer
from depresolve.models.constraint import constraint_string
from depresolve.pkgtree import GoPackageLister
from depresolve.sources import GitSourceManager

log = structlog.get_logger("depresolve.cli")


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Verbose logging")
@click.pass_context
def main(click_ctx: click.Context, verbose: bool) -> None:
    """depresolve: infer manifests and locks for Go projects."""
    setup_logging("DEBUG" if verbose else None)
    click_ctx.obj = {"verbose": verbose}


def _resolve_root(ctx: Ctx, root: str, import_path: str | None) -> tuple[Path, str]:
    root_dir = Path(root).resolve()
    if import_path:
        return root_dir, import_path.strip("/")
    return root_dir, ctx.import_for_abs(root_dir)


def _print_feedback(event: FeedbackEvent) -> None:
    for message in event.messages():
        click.echo(f"  {message}", err=True)


def _new_ctx(click_ctx: click.Context, as_json: bool) -> Ctx:
    ctx = Ctx.from_env(verbose=click_ctx.obj.get("verbose", False))
    if not as_json:
        ctx.feedback_callbacks.append(_print_feedback)
    return ctx


def _fail(exc: Exception) -> None:
    click.echo(f"Error: {exc}", err=True)
    sys.exit(1)


@main.command("discover")
@click.argument("root", default=".", type=click.Path(exists=True, file_okay=False))
@click.option("--import-path", default=None, help="Import path of ROOT (default: derived from GOPATH)")
@click.option("--json", "as_json", is_flag=True, help="Print the result as JSON")
@click.pass_context
def discover(click_ctx: click.Context, root: str, import_path: str | None, as_json: bool) -> None:
    """Walk the import graph through GOPATH and classify every dependency."""
    ctx = _new_ctx(click_ctx, as_json)
    sm = GitSourceManager()
    lister = GoPackageLister()

    async def _run():
        root_dir, import_root = _resolve_root(ctx, root, import_path)
        tree = lister.list_packages(root_dir, import_root)
        packages, _ = get_direct_dependencies(sm, tree)
        scanner = GopathScanner(ctx, sm, lister)
        return await scanner.scan(packages)

    try:
        pd = asyncio.run(_run())
    except DepResolveError as exc:
        _fail(exc)
        return

    if as_json:
        click.echo(json.dumps(pd.to_dict(), indent=2))
        return

    click.echo(f"On disk ({len(pd.ondisk)}):")
    for r in sorted(pd.ondisk):
        click.echo(f"  {r}  {pd.ondisk[r]}")
    click.echo(f"Not on disk ({len(pd.notondisk)}):")
    for r in sorted(pd.notondisk):
        click.echo(f"  {r}")


@main.command("import")
@click.argument("root", default=".", type=click.Path(exists=True, file_okay=False))
@click.option("--import-path", default=None, help="Import path of ROOT (default: derived from GOPATH)")
@click.option("--json", "as_json", is_flag=True, help="Print the result as JSON")
@click.pass_context
def import_cmd(click_ctx: click.Context, root: str, import_path: str | None, as_json: bool) -> None:
    """Convert glide, godep, govend, govendor, vndr, gb or gom configuration."""
    ctx = _new_ctx(click_ctx, as_json)
    sm = GitSourceManager()

    try:
        root_dir, import_root = _resolve_root(ctx, root, import_path)
        tree = GoPackageLister().list_packages(root_dir, import_root)
        _, direct = get_direct_dependencies(sm, tree)
        analyzer = RootAnalyzer(ctx, sm, direct)
        manifest, lock = analyzer.import_manifest_and_lock(root_dir, import_root)
    except DepResolveError as exc:
        _fail(exc)
        return

    if lock is None:
        log.info("import.no_metadata", root=import_root)

    result = {
        "manifest": manifest.to_dict(),
        "lock": lock.to_dict() if lock is not None else None,
    }
    if as_json:
        click.echo(json.dumps(result, indent=2))
        return

    click.echo(f"Constraints ({len(manifest.constraints)}):")
    for r, props in sorted(manifest.constraints.items()):
        click.echo(f"  {r}  {constraint_string(props.constraint) or '*'}")
    projects = lock.projects if lock is not None else []
    click.echo(f"Locked ({len(projects)}):")
    for lp in projects:
        click.echo(f"  {lp.ident.root}  {lp.version}")


if __name__ == "__main__":
    main()
