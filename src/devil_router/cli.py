"""
devil-router CLI — classify | route | categories | keys | doctor
"""
import asyncio
import json
import sys
from pathlib import Path

import click

from devil_router.config.settings import Settings, build_routing_table, load_settings
from devil_router.core.exceptions import DevilRouterError
from devil_router.core.factories import DependencyContainer
from devil_router.core.structured_logger import TraceContext, configure_logging
from devil_router.routing import CategoryClassifier
from devil_router.routing.category_router import summarize
from devil_router.security.encryption import FernetSecretCipher


def _load(ctx: click.Context) -> Settings:
    settings = ctx.obj.get("settings")
    if settings is None:
        config_path: Path | None = ctx.obj.get("config_path")
        try:
            settings = load_settings(config_path)
        except (FileNotFoundError, ValueError) as e:
            raise click.ClickException(str(e)) from e
        configure_logging(settings.logging.level, settings.logging.format)
        ctx.obj["settings"] = settings
    return settings


def _container(ctx: click.Context) -> DependencyContainer:
    container = ctx.obj.get("container")
    if container is None:
        try:
            container = DependencyContainer(_load(ctx))
        except DevilRouterError as e:
            raise click.ClickException(e.message) from e
        ctx.obj["container"] = container
    return container


def _echo_json(data) -> None:
    click.echo(json.dumps(data, indent=2, default=str))


@click.group()
@click.version_option(package_name="devil-router")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="YAML config file (defaults to DEVIL_* environment variables)",
)
@click.pass_context
def cli(ctx: click.Context, config_path: Path | None) -> None:
    """devil-router — message routing for the DEVIL DEV chat app."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path


@cli.command()
@click.argument("message")
@click.pass_context
def classify(ctx: click.Context, message: str) -> None:
    """Show the category a MESSAGE would be routed to."""
    settings = _load(ctx)
    try:
        classifier = CategoryClassifier(build_routing_table(settings))
    except DevilRouterError as e:
        raise click.ClickException(e.message) from e
    match = classifier.detect(message)
    _echo_json({
        "category": match.category,
        "stage": match.stage.name.lower(),
        "trigger": match.trigger,
    })


@cli.command()
@click.argument("message", required=False, default="")
@click.option("--category", "-c", default=None, help="Force a category instead of auto-detecting")
@click.pass_context
def route(ctx: click.Context, message: str, category: str | None) -> None:
    """Resolve MESSAGE (or --category) to a credential and model."""
    router = _container(ctx).router
    with TraceContext():
        try:
            if category is not None:
                result = asyncio.run(router.route_by_category(category))
            else:
                result = asyncio.run(router.route_by_message(message))
        except DevilRouterError as e:
            click.echo(e.user_message(), err=True)
            click.echo(e.message, err=True)
            sys.exit(1)
    _echo_json(summarize(result))


@cli.command()
@click.pass_context
def categories(ctx: click.Context) -> None:
    """List configured categories and whether their keys are present."""
    statuses = asyncio.run(_container(ctx).router.list_categories())
    for status in statuses:
        marker = "ok " if status.has_key else "-- "
        default = " (default)" if status.is_default else ""
        click.echo(
            f"{marker}{status.category:<18} {status.credential_name:<26} "
            f"{status.model or '<no key>'}{default}"
        )


@cli.command()
@click.pass_context
def doctor(ctx: click.Context) -> None:
    """Health check the credential store."""
    report = asyncio.run(_container(ctx).store.verify())
    _echo_json(report)
    if not report["healthy"]:
        sys.exit(1)


@cli.group()
def keys() -> None:
    """Manage stored API keys."""
    pass


@keys.command("set")
@click.argument("name")
@click.option("--model", "model_id", required=True, help="Exact provider model id, e.g. vendor/model")
@click.option("--secret", prompt=True, hide_input=True, help="API key value")
@click.option("--created-by", default="admin", show_default=True)
@click.pass_context
def keys_set(ctx: click.Context, name: str, model_id: str, secret: str, created_by: str) -> None:
    """Create or update the API key NAME."""
    store = _container(ctx).store
    try:
        created = asyncio.run(store.save(name, secret, model_id, created_by=created_by))
    except DevilRouterError as e:
        raise click.ClickException(e.message) from e
    action = "saved" if created else "updated"
    click.echo(f"API key {name.strip()} {action} -> {model_id.strip()}")


@keys.command("list")
@click.pass_context
def keys_list(ctx: click.Context) -> None:
    """List stored API keys (secrets are not shown)."""
    records = asyncio.run(_container(ctx).store.list_records())
    if not records:
        click.echo("No API keys configured")
        return
    for record in records:
        updated = record.updated_at.isoformat(timespec="seconds") if record.updated_at else "-"
        click.echo(f"{record.name:<26} {record.model_id:<45} {record.created_by:<10} {updated}")


@keys.command("delete")
@click.argument("name")
@click.pass_context
def keys_delete(ctx: click.Context, name: str) -> None:
    """Delete the API key NAME."""
    if not asyncio.run(_container(ctx).store.delete(name)):
        raise click.ClickException(f"API key not found: {name}")
    click.echo(f"API key {name} deleted")


@keys.command("test")
@click.argument("name")
@click.pass_context
def keys_test(ctx: click.Context, name: str) -> None:
    """Check that the API key NAME is accepted by the provider."""
    result = asyncio.run(_container(ctx).prober.probe(name))
    _echo_json(result.to_dict())
    if not result.success:
        sys.exit(1)


@keys.command("generate-encryption-key")
def keys_generate_encryption_key() -> None:
    """Print a fresh Fernet key for DEVIL's ENCRYPTION_KEY."""
    click.echo(FernetSecretCipher.generate_key())


if __name__ == "__main__":
    cli()
