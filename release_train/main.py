"""
Release Train — CLI entrypoint.

Usage:
    python -m release_train.main --help
    releasetrain version parse 20.1.1-15.6
    releasetrain version compare 19.3.1-0 19.3.1-4
    releasetrain check --chart "repo/api - 0.1.0" --current 19.0.1-0 --baseline 19.0.1-0
    releasetrain config check
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click

from release_train import __version__
from release_train.core.observability.logging_config import resolve_level, setup_logging


@click.group()
@click.version_option(version=__version__, prog_name="releasetrain")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to release.yml (default: auto-detect).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
) -> None:
    """Release Train — find promotable image versions for your services."""
    ctx.ensure_object(dict)
    ctx.obj["quiet"] = quiet
    ctx.obj["log_flags"] = {"debug": debug, "verbose": verbose, "quiet": quiet}
    ctx.obj["config_path"] = Path(config_path) if config_path else None

    setup_logging(level=resolve_level(debug=debug, verbose=verbose, quiet=quiet))


def _load_settings_or_exit(ctx: click.Context):
    from release_train.core.config.loader import ConfigError, load_settings

    try:
        settings = load_settings(ctx.obj.get("config_path"))
    except ConfigError as e:
        click.secho(f"❌ {e}", fg="red", err=True)
        sys.exit(2)

    # release.yml logging applies only below flags and RT_LOG_LEVEL
    if settings.logging.level or settings.logging.file:
        setup_logging(
            level=resolve_level(**ctx.obj.get("log_flags", {}), configured=settings.logging.level),
            log_file=settings.logging.file,
        )
    return settings


# ── version ─────────────────────────────────────────────────────


@cli.group()
def version() -> None:
    """Inspect and compare image tags."""


@version.command("parse")
@click.argument("tag")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
def version_parse(tag: str, as_json: bool) -> None:
    """Show how TAG is read by the release rules."""
    from release_train.core.services.versioning import parse_version

    token = parse_version(tag)
    data = {
        "tag": token.raw,
        "major": token.major,
        "minor": token.minor,
        "patch": token.patch,
        "suffix_kind": token.suffix_kind.value,
        "build_number": token.build_number,
        "hotfix_build_number": token.hotfix_build_number,
        "major_version": token.major_line,
        "minor_version": token.minor_ordinal,
        "hotfix_major_version": token.hotfix_branch,
    }

    if as_json:
        click.echo(json.dumps(data, indent=2))
        return

    click.secho(f"\n🏷  {tag}", fg="cyan", bold=True)
    for key, value in data.items():
        if key != "tag":
            click.echo(f"   {key:<22} {value}")


@version.command("compare")
@click.argument("service_version")
@click.argument("product_version")
def version_compare(service_version: str, product_version: str) -> None:
    """Check that SERVICE_VERSION is on PRODUCT_VERSION's major line."""
    from release_train.core.services.versioning import validate_version

    if validate_version(service_version, product_version):
        click.secho(f"✅ {service_version} is compatible with {product_version}", fg="green")
        return

    click.secho(f"❌ {service_version} is not compatible with {product_version}", fg="red")
    sys.exit(1)


# ── check ───────────────────────────────────────────────────────


@cli.command()
@click.option("--chart", "chart_reference", required=True, help='Chart reference, e.g. "repo/api - 0.1.0".')
@click.option("--current", "current_version", required=True, help="Currently deployed image tag.")
@click.option("--baseline", required=True, help="Product version baseline.")
@click.option("--hotfix", is_flag=True, help="The product version is a hotfix train.")
@click.option("--image", "image_repository", default=None, help="Image repository (skips the Helm lookup).")
@click.option(
    "--tags-file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="YAML file with image + tags, used instead of the registry.",
)
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def check(
    ctx: click.Context,
    chart_reference: str,
    current_version: str,
    baseline: str,
    hotfix: bool,
    image_repository: str | None,
    tags_file: Path | None,
    as_json: bool,
) -> None:
    """Find a promotable image version for one service."""
    from release_train.core.models.release import ServiceReleaseContext
    from release_train.core.use_cases.check import run_check

    settings = _load_settings_or_exit(ctx)
    context = ServiceReleaseContext(
        chart_reference=chart_reference,
        current_service_version=current_version,
        product_version_baseline=baseline,
        is_hotfix_train=hotfix,
    )
    result = run_check(
        context,
        settings,
        image_repository=image_repository,
        tags_file=tags_file,
    )

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        if result.error:
            sys.exit(1)
        return

    if result.error:
        click.secho(f"❌ {result.error}", fg="red")
        sys.exit(1)

    if not result.image_repository:
        click.secho(f"⚠️  No image repository for {chart_reference} — nothing to check", fg="yellow")
        return

    if result.has_update:
        click.secho(
            f"⬆️  {chart_reference}: {current_version} → {result.promotable_version}",
            fg="green",
            bold=True,
        )
    elif not ctx.obj.get("quiet"):
        click.echo(f"✓ {chart_reference}: {current_version} is up to date")


# ── config ──────────────────────────────────────────────────────


@cli.group()
def config() -> None:
    """Configuration management."""


@config.command("check")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def config_check(ctx: click.Context, as_json: bool) -> None:
    """Validate release.yml and show the effective settings."""
    settings = _load_settings_or_exit(ctx)
    data = settings.model_dump(mode="json")
    if data["registry"].get("password"):
        data["registry"]["password"] = "***"

    if as_json:
        click.echo(json.dumps(data, indent=2))
        return

    click.secho("✅ Configuration valid", fg="green")
    for section, values in data.items():
        click.secho(f"   {section}", bold=True)
        for key, value in values.items():
            click.echo(f"     {key:<14} {value}")


def main() -> None:
    """Entry point for the console script."""
    cli(obj={})


if __name__ == "__main__":
    main()
