"""Dependency removal CLI command registrations."""

from __future__ import annotations

from pathlib import Path

import click

from vardeps.remover.descriptor import MATCHERS


def _load_dependency_names(
    *,
    names: tuple[str, ...],
    deps_file: str | None,
) -> list[str]:
    out: list[str] = []
    for raw in names:
        name = str(raw).strip()
        if name != "" and name not in out:
            out.append(name)
    if deps_file is None or str(deps_file).strip() == "":
        return out
    path = Path(deps_file).expanduser().resolve()
    if not path.exists() or not path.is_file():
        raise click.UsageError(f"Dependency list file not found: {path}")
    for raw in path.read_text(encoding="utf-8", errors="replace").splitlines():
        line = raw.strip()
        if line == "" or line.startswith("#"):
            continue
        if line not in out:
            out.append(line)
    return out


@click.command("remove-deps")
@click.argument("location")
@click.option(
    "--dep",
    "-d",
    "names",
    multiple=True,
    help="Dependency name to remove, exactly as it appears in meta.json (repeatable)",
)
@click.option(
    "--deps-file",
    default=None,
    help="File with one dependency name per line (# comments allowed)",
)
@click.option(
    "--matcher",
    type=click.Choice(list(MATCHERS)),
    default=None,
    help="Entry matcher (default from config: descriptor.matcher)",
)
@click.option("--dry-run", is_flag=True, help="Report what would be removed without writing")
@click.option("--json-out", default=None, help="Optional path to write the removal report JSON")
@click.option("--timings", "show_timings", is_flag=True, help="Print a phase timing report")
@click.pass_context
def remove_deps(
    ctx: click.Context,
    location: str,
    names: tuple[str, ...],
    deps_file: str | None,
    matcher: str | None,
    dry_run: bool,
    json_out: str | None,
    show_timings: bool,
) -> None:
    """Remove dependency entries from the meta.json of a package.

    LOCATION is a .var archive or an unpacked package folder.
    """
    from vardeps.services.removal_service import (
        RemoveDepsServiceRequest,
        run_remove_deps,
    )

    dependency_names = _load_dependency_names(names=names, deps_file=deps_file)
    if not dependency_names:
        raise click.UsageError("Provide at least one dependency via --dep or --deps-file.")

    ctx.ensure_object(dict)
    run_remove_deps(
        RemoveDepsServiceRequest(
            location=location,
            dependency_names=dependency_names,
            matcher=matcher,
            dry_run=dry_run,
            json_out=json_out,
            show_timings=show_timings,
            cfg=ctx.obj.get("cfg"),
        ),
        emit=lambda message, err: click.echo(message, err=err),
    )


def register_deps_commands(cli: click.Group) -> None:
    """Register dependency-removal commands."""
    cli.add_command(remove_deps)
