import click
from pathlib import Path
import json
import logging
import os
import sys
from datetime import datetime
from typing import Dict, Optional, Tuple

from .configuration import PowerContentConfig
from .content import PowerContent
from .errors import ConfigurationError, SiteSnapshotError
from .host import MemorySite
from .info import __version__, info as extension_info
from .logging_config import configure_logging
from .output import ConsoleSink

logger = logging.getLogger(__name__)


def _parse_attributes(pairs: Tuple[str, ...]) -> Dict[str, str]:
    attributes: Dict[str, str] = {}
    for pair in pairs:
        identifier, separator, value = pair.partition("=")
        if not separator or not identifier:
            raise click.BadParameter(f"expected IDENTIFIER=VALUE, got {pair!r}", param_hint="--attr")
        attributes[identifier.strip()] = value
    return attributes


def _open_site(ctx: click.Context) -> MemorySite:
    config: PowerContentConfig = ctx.obj["config"]
    if config.site is None:
        raise click.UsageError("No site snapshot given (use --site or POWERCONTENT_SITE)")
    if not config.site.exists():
        raise click.UsageError(f"Site snapshot {config.site} does not exist, run 'init' first")
    try:
        return MemorySite.load(config.site)
    except SiteSnapshotError as e:
        raise click.ClickException(e.message) from e


def _facade(ctx: click.Context, site: MemorySite) -> PowerContent:
    return PowerContent(site.content_host(), output=ConsoleSink(), config=ctx.obj["config"])


def _find_object(site: MemorySite, object_id: Optional[int], remote_id: Optional[str]):
    if object_id is None and not remote_id:
        raise click.UsageError("Pass --id or --remote-id")
    host = site.content_host()
    obj = host.objects.fetch(object_id) if object_id is not None else host.objects.fetch_by_remote_id(remote_id)
    if obj is None:
        raise click.ClickException(f"No object with {'ID ' + str(object_id) if object_id is not None else 'remote ID ' + remote_id}")
    return obj


@click.group()
@click.option("--site", "site_path", type=click.Path(path_type=Path), help="JSON site snapshot")
@click.option("-v", "--verbose", count=True)
@click.option(
    "--enable-file-logging",
    is_flag=True,
    help="Enable logging to file in logs/ directory",
)
@click.version_option(__version__, prog_name="powercontent")
@click.pass_context
def main(ctx: click.Context, site_path: Optional[Path], verbose: int, enable_file_logging: bool) -> None:
    """PowerContent - create, update and remove content objects"""
    try:
        config = PowerContentConfig.from_env(site=site_path)
    except ConfigurationError as e:
        raise click.ClickException(e.message) from e

    logging_level = config.log_level
    if verbose == 1:
        logging_level = "INFO"
    elif verbose >= 2:
        logging_level = "DEBUG"

    log_file = None
    if enable_file_logging:
        session_id = os.environ.get(
            "POWERCONTENT_SESSION_ID", datetime.now().strftime("%Y%m%d_%H%M%S")
        )
        log_file = Path.cwd() / "logs" / f"powercontent-{session_id}.log"
        print(f"📝 Debug logging enabled: {log_file}", file=sys.stderr)
    configure_logging(logging_level, log_file)

    ctx.obj = {"config": config}


@main.command()
@click.option("--force", is_flag=True, help="Overwrite an existing snapshot")
@click.pass_context
def init(ctx: click.Context, force: bool) -> None:
    """Write a fresh site snapshot with the default tree and classes."""
    config: PowerContentConfig = ctx.obj["config"]
    if config.site is None:
        raise click.UsageError("No site snapshot given (use --site or POWERCONTENT_SITE)")
    if config.site.exists() and not force:
        raise click.ClickException(f"{config.site} already exists (use --force)")
    MemorySite().save(config.site)
    click.echo(f"Initialized site {config.site}")


@main.command()
@click.option("--class", "class_identifier", required=True, help="Content class identifier")
@click.option("--parent", "parent_node_id", type=int, required=True, help="Parent node ID")
@click.option("--attr", "attributes", multiple=True, help="IDENTIFIER=VALUE, repeatable")
@click.option("--remote-id")
@click.option("--owner", "owner_id", type=int)
@click.option("--section", "section_id", type=int)
@click.option("--locale", "language_locale")
@click.option("--publish-date", type=int, help="Unix timestamp")
@click.option("--additional-parent", "additional_parent_node_ids", type=int, multiple=True)
@click.option("--hidden", is_flag=True, help="Hide the created nodes")
@click.pass_context
def create(ctx: click.Context, class_identifier: str, parent_node_id: int, attributes, remote_id,
           owner_id, section_id, language_locale, publish_date, additional_parent_node_ids, hidden) -> None:
    """Create and publish a content object."""
    site = _open_site(ctx)
    obj = _facade(ctx, site).create_object(
        {
            "class_identifier": class_identifier,
            "parent_node_id": parent_node_id,
            "attributes": _parse_attributes(attributes),
            "remote_id": remote_id,
            "owner_id": owner_id,
            "section_id": section_id,
            "language_locale": language_locale,
            "publish_date": publish_date,
            "additional_parent_node_ids": list(additional_parent_node_ids),
            "visibility": not hidden,
        }
    )
    if obj is None:
        ctx.exit(1)
    site.save(ctx.obj["config"].site)


@main.command()
@click.option("--id", "object_id", type=int)
@click.option("--remote-id")
@click.option("--attr", "attributes", multiple=True, help="IDENTIFIER=VALUE, repeatable")
@click.option("--parent", "parent_node_id", type=int, help="New main parent node ID")
@click.option("--additional-parent", "additional_parent_node_ids", type=int, multiple=True)
@click.option("--clear-additional", is_flag=True, help="Remove every additional location")
@click.option("--hidden", is_flag=True, help="Hide the object's nodes")
@click.pass_context
def update(ctx: click.Context, object_id, remote_id, attributes, parent_node_id,
           additional_parent_node_ids, clear_additional, hidden) -> None:
    """Update and republish a content object."""
    site = _open_site(ctx)
    obj = _find_object(site, object_id, remote_id)

    additional = None
    if additional_parent_node_ids or clear_additional:
        additional = list(additional_parent_node_ids)

    updated = _facade(ctx, site).update_object(
        {
            "object": obj,
            "attributes": _parse_attributes(attributes),
            "parent_node_id": parent_node_id,
            "additional_parent_node_ids": additional,
            "visibility": not hidden,
        }
    )
    if not updated:
        ctx.exit(1)
    site.save(ctx.obj["config"].site)


@main.command()
@click.option("--id", "object_id", type=int)
@click.option("--remote-id")
@click.pass_context
def remove(ctx: click.Context, object_id, remote_id) -> None:
    """Remove a content object from every location."""
    site = _open_site(ctx)
    obj = _find_object(site, object_id, remote_id)
    removed = _facade(ctx, site).remove_object(obj)
    site.save(ctx.obj["config"].site)
    if not removed:
        ctx.exit(1)


@main.command()
@click.option("--id", "object_id", type=int)
@click.option("--remote-id")
@click.pass_context
def show(ctx: click.Context, object_id, remote_id) -> None:
    """Print a content object and its locations as JSON."""
    site = _open_site(ctx)
    obj = _find_object(site, object_id, remote_id)
    data = obj.record.model_dump(mode="json")
    data["nodes"] = [node.record.model_dump(mode="json") for node in obj.assigned_nodes()]
    data["main_node_id"] = obj.main_node_id
    click.echo(json.dumps(data, indent=2))


@main.command("info")
def show_info() -> None:
    """Print the extension descriptor."""
    for key, value in extension_info().items():
        click.echo(f"{key}: {value}")


if __name__ == "__main__":
    main()
