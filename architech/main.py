"""
Architech — CLI entrypoint.

Usage:
    architech --help
    architech run recipe.yml --dry-run
    architech validate recipe.yml
    architech paths apps.web.src --structure monorepo
    architech modifiers
    architech history
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click

from architech import __version__
from architech.core.observability.logging_config import level_from_flags, setup_logging

_STATUS_COLORS = {"ok": "green", "partial": "yellow", "failed": "red"}


@click.group()
@click.version_option(version=__version__, prog_name="architech")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.pass_context
def cli(ctx: click.Context, verbose: bool, quiet: bool, debug: bool) -> None:
    """Architech — apply blueprints to a project, all or nothing."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug

    # ── Logging setup (once, at process start) ──────────────────
    setup_logging(
        level=level_from_flags(verbose=verbose, quiet=quiet, debug=debug),
        quiet_third_party=not debug,
    )


# ── run ──────────────────────────────────────────────────────────


@cli.command()
@click.argument("recipe", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--root", type=click.Path(file_okay=False, path_type=Path), default=None,
              help="Project root (default: from the recipe).")
@click.option("--dry-run", is_flag=True, help="Run in memory only; write nothing, run no commands.")
@click.option("--continue-on-error", is_flag=True, help="Keep going after a module fails.")
@click.option("--no-audit", is_flag=True, help="Don't append to the audit ledger.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def run(
    ctx: click.Context,
    recipe: Path,
    root: Path | None,
    dry_run: bool,
    continue_on_error: bool,
    no_audit: bool,
    as_json: bool,
) -> None:
    """Execute every module of a recipe.

    Examples:

        architech run recipe.yml

        architech run recipe.yml --dry-run

        architech run recipe.yml --root ./my-app --continue-on-error
    """
    from architech.core.use_cases.run import run_recipe

    result = run_recipe(
        recipe,
        root=root,
        dry_run=dry_run,
        stop_on_failure=not continue_on_error,
        audit=not no_audit,
    )

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        if not result.ok:
            sys.exit(1)
        return

    if result.error:
        click.secho(f"❌ {result.error}", fg="red")
        sys.exit(1)

    report = result.report
    loaded = result.loaded
    assert report is not None and loaded is not None  # guaranteed after error check above
    verbose = ctx.obj.get("verbose", False)

    mode_label = "[dry-run] " if dry_run else ""
    click.secho(f"\n⚡ {mode_label}{loaded.name}", fg="cyan", bold=True)
    click.echo(f"   Root: {loaded.root} | Modules: {report.total}")
    click.echo()

    for module_result in report.results:
        timing = f" ({module_result.duration_ms}ms)" if module_result.duration_ms else ""
        if module_result.success:
            click.secho(f"   ✓ {module_result.module_id}", fg="green", nl=False)
            click.echo(f"{timing}  {len(module_result.artifacts)} file(s)")
            if verbose or dry_run:
                for path in module_result.artifacts:
                    click.echo(f"     │ {path}")
        else:
            click.secho(f"   ✗ {module_result.module_id}", fg="red", nl=False)
            click.echo(timing)
            for message in module_result.error_messages:
                click.echo(f"     │ {message}")
        for warning in module_result.warnings:
            click.secho(f"     ⚠️  {warning}", fg="yellow")
        if verbose:
            for note in module_result.notes:
                click.echo(f"     · {note}")

    for module_id in report.not_run:
        click.secho(f"   ⊘ {module_id} ", fg="yellow", nl=False)
        click.echo("(not run)")

    click.echo()
    click.secho(
        f"   Result: {report.succeeded}/{report.total} succeeded",
        fg=_STATUS_COLORS.get(report.status, "white"),
        bold=True,
    )
    if result.audit_path and verbose:
        click.echo(f"   📝 {result.audit_path}")

    if not report.all_ok:
        click.echo()
        sys.exit(1)

    click.echo()


# ── validate ─────────────────────────────────────────────────────


@cli.command()
@click.argument("recipe", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
def validate(recipe: Path, as_json: bool) -> None:
    """Validate a recipe and its blueprints without running anything."""
    from architech.core.use_cases.validate import validate_recipe

    result = validate_recipe(recipe)

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(0 if result.valid else 1)

    if result.valid:
        assert result.loaded is not None  # guaranteed when valid
        click.secho("✅ Recipe is valid", fg="green", bold=True)
        click.echo(f"   Project: {result.loaded.name}")
        click.echo(f"   Modules: {len(result.loaded.modules)}")
        click.echo(f"   Actions: {result.action_count}")
    else:
        click.secho("❌ Recipe errors:", fg="red", bold=True)
        for err in result.errors:
            click.echo(f"   • {err}")

    if result.warnings:
        click.echo()
        click.secho("⚠️  Warnings:", fg="yellow")
        for warn in result.warnings:
            click.echo(f"   • {warn}")

    if not result.valid:
        click.echo()
        sys.exit(1)

    click.echo()


# ── paths ────────────────────────────────────────────────────────


def _parse_overrides(values: tuple[str, ...]) -> dict[str, str]:
    overrides = {}
    for item in values:
        key, sep, value = item.partition("=")
        if not sep or not key.strip():
            raise click.BadParameter(f"expected KEY=PATH, got '{item}'", param_hint="--override")
        overrides[key.strip()] = value
    return overrides


@cli.command()
@click.argument("keys", nargs=-1, required=True)
@click.option("--recipe", type=click.Path(exists=True, dir_okay=False, path_type=Path), default=None,
              help="Take structure, overrides and extra keys from a recipe.")
@click.option("--structure", type=click.Choice(["single-app", "monorepo"]), default=None,
              help="Project structure (default: recipe's, else single-app).")
@click.option("--override", "overrides", multiple=True, metavar="KEY=PATH", help="Path override.")
@click.option("--root", type=click.Path(file_okay=False, path_type=Path), default=None,
              help="Project root (default: recipe's, else the current directory).")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
def paths(
    keys: tuple[str, ...],
    recipe: Path | None,
    structure: str | None,
    overrides: tuple[str, ...],
    root: Path | None,
    as_json: bool,
) -> None:
    """Resolve logical path keys (apps.web.src, packages.db.src, ...)."""
    from architech.core.config.loader import ConfigError, load_project
    from architech.core.config.settings import EngineSettings
    from architech.core.errors import PathResolutionError, ValidationError
    from architech.core.paths.resolver import PathResolver
    from architech.core.paths.validation import validate_overrides

    extra = _parse_overrides(overrides)
    try:
        if recipe is not None:
            loaded = load_project(recipe, root=root, structure=structure)
            resolver = loaded.resolver
            assert resolver is not None
            resolver.overrides.update(extra)
        else:
            resolver = PathResolver(
                root=str((root or Path.cwd()).resolve()),
                structure=structure or EngineSettings.from_env().default_structure,
                overrides=extra,
            )
    except ConfigError as e:
        click.secho(f"❌ {e}", fg="red")
        sys.exit(1)

    validation = validate_overrides(resolver.overrides, resolver.schema, resolver.structure)
    resolved: dict[str, str] = {}
    failures: dict[str, dict] = {}
    for key in keys:
        try:
            resolved[key] = resolver.relative(key)
            resolver.resolve(key)
        except (PathResolutionError, ValidationError) as e:
            resolved.pop(key, None)
            failures[key] = e.to_dict()

    if as_json:
        click.echo(json.dumps({
            "root": resolver.root,
            "structure": str(resolver.structure),
            "paths": resolved,
            "errors": failures,
            "overrides": validation.to_dict(),
        }, indent=2))
        sys.exit(1 if failures or not validation.valid else 0)

    click.secho(f"\n📂 {resolver.root} ({resolver.structure})", fg="cyan", bold=True)
    width = max(len(k) for k in keys)
    for key in keys:
        if key in resolved:
            click.echo(f"   {key.ljust(width)}  → {resolved[key]}")
        else:
            click.secho(f"   {key.ljust(width)}  ✗ {failures[key]['message']}", fg="red")

    for issue in validation.errors:
        click.secho(f"   ❌ override {issue.key}: {issue.message}", fg="red")
    for issue in validation.warnings:
        click.secho(f"   ⚠️  override {issue.key}: {issue.message}", fg="yellow")

    click.echo()
    if failures or not validation.valid:
        sys.exit(1)


# ── modifiers ────────────────────────────────────────────────────


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
def modifiers(as_json: bool) -> None:
    """List the built-in file modifiers."""
    from architech.core.modifiers import default_registry

    definitions = default_registry().list_modifiers()

    if as_json:
        click.echo(json.dumps([
            {
                "name": d.name,
                "description": d.description,
                "file_types": list(d.file_types),
                "params": d.params_model.model_json_schema(),
            }
            for d in definitions
        ], indent=2))
        return

    click.secho(f"\n🧩 Modifiers ({len(definitions)})", fg="cyan", bold=True)
    width = max(len(d.name) for d in definitions)
    for d in definitions:
        types = f"  [{', '.join(d.file_types)}]" if d.file_types else ""
        click.echo(f"   {d.name.ljust(width)}  {d.description}{types}")
    click.echo()


# ── history ──────────────────────────────────────────────────────


@cli.command()
@click.option("--root", type=click.Path(file_okay=False, path_type=Path), default=None,
              help="Project root (default: current directory).")
@click.option("-n", "limit", default=10, show_default=True, help="Number of entries.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
def history(root: Path | None, limit: int, as_json: bool) -> None:
    """Show recent runs from the audit ledger."""
    from architech.core.config.loader import ConfigError
    from architech.core.config.settings import EngineSettings
    from architech.core.persistence.audit import AuditWriter

    try:
        settings = EngineSettings.from_env()
    except ConfigError as e:
        click.secho(f"❌ {e}", fg="red")
        sys.exit(1)
    writer = AuditWriter(project_root=(root or Path.cwd()).resolve(), audit_dir=settings.audit_dir)
    entries = writer.read_recent(limit)

    if as_json:
        click.echo(json.dumps([e.model_dump(mode="json") for e in entries], indent=2))
        return

    if not entries:
        click.secho(f"No runs recorded in {writer.path}", fg="yellow")
        return

    click.secho(f"\n📜 Last {len(entries)} run(s)", fg="cyan", bold=True)
    for entry in reversed(entries):
        color = _STATUS_COLORS.get(entry.status, "white")
        click.echo(f"   {entry.timestamp[:19]}  {entry.operation_id}  ", nl=False)
        click.secho(entry.status, fg=color, nl=False)
        click.echo(f"  {entry.modules_succeeded}/{entry.modules_total}  {entry.project}")
        for error in entry.errors[:3]:
            click.echo(f"     │ {error}")
    click.echo()


if __name__ == "__main__":
    cli()
