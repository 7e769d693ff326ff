"""
Resource, metafield and customer CLI commands
"""
import asyncio
import json
from pathlib import Path
from typing import Any, Awaitable, Callable, Optional

import typer

from ...core.exceptions import ConfigError, ThemeSyncError
from ...core.logging import get_logger, get_stdout_console, get_stderr_console
from ...core.tasks import Err, Outcome
from ...core.throttle import RateLimiter
from ...domain.resources import ResourceService
from ...infrastructure.api import ThemeAPIClient
from ..config import load_project_config

logger = get_logger(__name__)
stdout_console = get_stdout_console()
stderr_console = get_stderr_console()

ConfigOption = typer.Option(
    None, "--config", "-c", help="Configuration file (default: themesync.toml, searched upwards)"
)


def register_resources_apps(app: typer.Typer) -> None:
    """Register resources/metafields sub-apps and the customer command"""
    resources_app = typer.Typer(
        name="resources",
        help="Pull and push store resources (products, collections, ...)",
        add_completion=False,
    )
    resources_app.command(name="pull")(resources_pull)
    resources_app.command(name="push")(resources_push)
    app.add_typer(resources_app, name="resources")

    metafields_app = typer.Typer(
        name="metafields",
        help="Pull and push metafields",
        add_completion=False,
    )
    metafields_app.command(name="pull")(metafields_pull)
    metafields_app.command(name="push")(metafields_push)
    app.add_typer(metafields_app, name="metafields")

    app.command(name="customer")(customer_pull)


# ============================================================
# Helpers
# ============================================================

def _run_service(
    config_path: Optional[str],
    action: Callable[[ResourceService], Awaitable[Outcome]],
) -> Any:
    """Build client and service, run action, exit 1 on failure"""
    try:
        config = load_project_config(Path(config_path).expanduser() if config_path else None)

        async def main() -> Outcome:
            limiter = RateLimiter(
                bucket_size=config.throttle.bucket_size,
                leak_rate=config.throttle.leak_rate,
                padding=config.throttle.padding,
            )
            async with ThemeAPIClient(
                config.store, limiter=limiter, binary_formats=config.binary_formats
            ) as api:
                service = ResourceService(
                    api,
                    on_page=lambda kind, number, count: logger.info(
                        f"{kind}: page {number} ({count} item(s))"
                    ),
                )
                try:
                    return await action(service)
                finally:
                    await limiter.aclose()

        outcome = asyncio.run(main())
    except ConfigError as e:
        stderr_console.print(f"[red]Config Error:[/red] {e}")
        raise typer.Exit(1)
    except ThemeSyncError as e:
        stderr_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    if isinstance(outcome, Err):
        stderr_console.print(f"[red]Request failed:[/red] {outcome.reason}")
        raise typer.Exit(1)
    return outcome.value


def _emit(data: Any, output: Optional[Path]) -> None:
    if output is None:
        stdout_console.print_json(data=data)
        return
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
    stdout_console.print(f"[green]✓[/green] Saved to [cyan]{output}[/cyan]")


def _read_json(path: Path) -> Any:
    try:
        return json.loads(path.expanduser().read_text(encoding="utf-8"))
    except OSError as e:
        stderr_console.print(f"[red]Error:[/red] Cannot read {path}: {e}")
        raise typer.Exit(1)
    except json.JSONDecodeError as e:
        stderr_console.print(f"[red]Error:[/red] {path} is not valid JSON: {e}")
        raise typer.Exit(1)


# ============================================================
# Commands
# ============================================================

def resources_pull(
    resource_type: str = typer.Argument(..., help="Singular resource name, e.g. product"),
    fields: Optional[str] = typer.Option(None, "--fields", "-f", help="Comma-separated fields"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write JSON here"),
    config_path: Optional[str] = ConfigOption,
):
    """
    Download every record of a resource, following pagination

    Examples:
        themesync resources pull product --fields id,title -o products.json
    """
    items = _run_service(
        config_path, lambda service: service.download_resource(resource_type, fields=fields)
    )
    _emit(items, output)


def resources_push(
    resource_type: str = typer.Argument(..., help="Singular resource name, e.g. product"),
    source: Path = typer.Argument(..., help="JSON file: one object or a list"),
    method: Optional[str] = typer.Option(
        None, "--method", "-m", help="POST or PUT (default: POST for one object, PUT for a list)"
    ),
    config_path: Optional[str] = ConfigOption,
):
    """
    Create or update records from a JSON file

    Examples:
        themesync resources push product new-product.json
        themesync resources push product products.json --method PUT
    """
    payload = _read_json(source)
    result = _run_service(
        config_path, lambda service: service.upload_resource(resource_type, payload, method)
    )
    if isinstance(result, int):
        stdout_console.print(f"[green]✓[/green] Uploaded {result} {resource_type}(s)")
    else:
        _emit(result, None)


def metafields_pull(
    resource_type: str = typer.Argument(..., help="Owner resource, e.g. product or shop"),
    resource_id: Optional[str] = typer.Argument(None, help="Owner id (omit for shop)"),
    namespace: Optional[str] = typer.Option(None, "--namespace", "-n", help="Namespace filter"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write JSON here"),
    config_path: Optional[str] = ConfigOption,
):
    """Download metafields of a resource (or of the shop)"""
    metafields = _run_service(
        config_path,
        lambda service: service.download_metafields(resource_type, resource_id, namespace),
    )
    _emit(metafields, output)


def metafields_push(
    resource_type: str = typer.Argument(..., help="Owner resource, e.g. product or shop"),
    source: Path = typer.Argument(..., help="JSON file holding one metafield"),
    resource_id: Optional[str] = typer.Option(None, "--id", help="Owner id (omit for shop)"),
    config_path: Optional[str] = ConfigOption,
):
    """Create a metafield from a JSON file"""
    body = _read_json(source)
    if not isinstance(body, dict):
        stderr_console.print("[red]Error:[/red] A metafield must be a JSON object")
        raise typer.Exit(1)
    created = _run_service(
        config_path, lambda service: service.upload_metafield(resource_type, resource_id, body)
    )
    _emit(created, None)


def customer_pull(
    customer_id: Optional[str] = typer.Argument(None, help="Customer id (omit for all)"),
    fields: Optional[str] = typer.Option(None, "--fields", "-f", help="Comma-separated fields"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write JSON here"),
    config_path: Optional[str] = ConfigOption,
):
    """
    Download one customer, or all of them

    Examples:
        themesync customer 207119551
        themesync customer -o customers.json
    """
    if customer_id:
        data = _run_service(
            config_path, lambda service: service.download_customer(customer_id, fields=fields)
        )
    else:
        data = _run_service(
            config_path, lambda service: service.download_customers(fields=fields)
        )
    _emit(data, output)
