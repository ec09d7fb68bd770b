"""
Raspberry Pi system information report — CLI entrypoint.

Usage:
    system-info --help
    system-info report --output report.txt
    system-info report --group network --group storage
    system-info deps
    system-info revision a020d3
    system-info throttle 0x50005
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click

from system_info import __version__
from system_info.core.observability.logging_config import resolve_level, setup_from_environment


@click.group()
@click.version_option(version=__version__, prog_name="system-info")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging.")
@click.option("--quiet", "-q", is_flag=True, help="Only log errors.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to config.yml (default: $SYSTEM_INFO_CONFIG or ~/.config/system-info/config.yml).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
) -> None:
    """Raspberry Pi system information report (read-only)."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug
    ctx.obj["config_path"] = Path(config_path) if config_path else None

    setup_from_environment(resolve_level(debug=debug, verbose=verbose, quiet=quiet))


@cli.command()
@click.option("--output", "-o", type=click.Path(dir_okay=False), default=None, help="Also write the report to this file.")
@click.option("--group", "-g", "groups", multiple=True, help="Only run this section group (repeatable).")
@click.option("--all", "use_all", is_flag=True, help="Run every section group (clears a saved selection).")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Print a JSON summary instead of the report text.")
@click.pass_context
def report(
    ctx: click.Context,
    output: str | None,
    groups: tuple[str, ...],
    use_all: bool,
    as_json: bool,
) -> None:
    """Run the full system report.

    Examples:

        system-info report

        system-info report --output /tmp/pi.txt

        system-info report --group network --group bluetooth
    """
    from system_info.core.use_cases.report import run_report

    if groups and use_all:
        raise click.UsageError("--group and --all are mutually exclusive.")

    result = run_report(
        config_path=ctx.obj.get("config_path"),
        groups=list(groups) if groups else None,
        use_all=use_all,
        output=Path(output) if output else None,
        emit=None if as_json else click.echo,
    )

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(result.exit_code)

    if result.error:
        click.secho(f"❌ {result.error}", fg="red", err=True)
        sys.exit(1)

    assert result.report is not None
    if result.output_path and not ctx.obj.get("quiet"):
        click.secho(f"💾 Report written to {result.output_path}", fg="cyan", err=True)
    sys.exit(result.exit_code)


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def deps(ctx: click.Context, as_json: bool) -> None:
    """Check required and supplemental packages."""
    from system_info.core.use_cases.deps import check_dependencies

    result = check_dependencies(config_path=ctx.obj.get("config_path"))

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(0 if result.ok else 1)

    if result.error:
        click.secho(f"❌ {result.error}", fg="red")
        sys.exit(1)

    required = result.required
    supplemental = result.supplemental
    assert required is not None and supplemental is not None

    click.secho(f"\n📦 Dependencies ({result.model_name or 'unknown model'})", fg="cyan", bold=True)
    for name in required.found:
        click.secho(f"   ✓ {name}", fg="green")
    for missing in required.missing:
        click.secho(f"   ✗ {missing.name}", fg="red", nl=False)
        click.echo(f"  → {missing.install_command}")
    click.echo(f"   {required.hits} out of {required.total} required packages are installed.")

    click.echo()
    for name in supplemental.found:
        click.secho(f"   ✓ {name}", fg="green")
    for name, reason in supplemental.incompatible.items():
        click.secho(f"   ⊘ {name} ", fg="yellow", nl=False)
        click.echo(f"({reason})")
    for name in supplemental.absent:
        click.echo(f"   · {name}")
    click.echo(f"   {supplemental.hits} out of {supplemental.total} supplemental packages are installed.")
    click.echo()

    if not required.ok:
        sys.exit(1)


@cli.command()
@click.argument("raw", required=False)
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
def revision(raw: str | None, as_json: bool) -> None:
    """Decode a board revision code (default: this board's)."""
    from system_info.core.use_cases.decode import decode_revision_code

    result = decode_revision_code(raw)

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(1 if result.error else 0)

    if result.error:
        click.secho(f"❌ {result.error}", fg="red")
        sys.exit(1)

    for line in result.lines:
        click.echo(line)


@cli.command()
@click.argument("word", required=False)
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
def throttle(word: str | None, as_json: bool) -> None:
    """Decode a throttle status word (default: this board's)."""
    from system_info.core.use_cases.decode import decode_throttle_word

    result = decode_throttle_word(word)

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(1 if result.error else 0)

    if result.error:
        click.secho(f"❌ {result.error}", fg="red")
        sys.exit(1)

    for line in result.lines:
        click.echo(line)


@cli.command()
@click.option("--group", "-g", "groups", multiple=True, help="Only list this group (repeatable).")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
def sections(groups: tuple[str, ...], as_json: bool) -> None:
    """List the report sections and their groups."""
    from system_info.core.inspections import select

    try:
        selected = select(groups)
    except ValueError as e:
        click.secho(f"❌ {e}", fg="red")
        sys.exit(1)

    if as_json:
        click.echo(json.dumps([
            {
                "id": i.id,
                "title": i.title,
                "group": i.group,
                "supplemental": i.supplemental,
                "requires": [c.name for c in i.requires],
            }
            for i in selected
        ], indent=2))
        return

    current = None
    for inspection in selected:
        if inspection.group != current:
            current = inspection.group
            click.secho(f"\n{current}", fg="cyan", bold=True)
        marker = " (***)" if inspection.supplemental else ""
        click.echo(f"   • {inspection.id:<20} {inspection.title}{marker}")
    click.echo()


if __name__ == "__main__":
    cli()
