"""
Watch and deploy CLI commands
"""
import asyncio
from pathlib import Path
from typing import Optional

import typer

from ...core.config import ThemeSyncConfig
from ...core.exceptions import ConfigError, ThemeSyncError
from ...core.logging import get_logger, get_stdout_console, get_stderr_console
from ...core.tasks import Err
from ...domain.sync import WatchService, build_components, run_deploy
from ..config import load_project_config

logger = get_logger(__name__)
stdout_console = get_stdout_console()
stderr_console = get_stderr_console()


def register_watch_commands(app: typer.Typer) -> None:
    """Register watch and deploy directly on the main app"""
    app.command(name="watch")(watch_run)
    app.command(name="deploy")(deploy_run)


def _config_path(value: Optional[str]) -> Optional[Path]:
    return Path(value).expanduser() if value else None


async def _watch(config: ThemeSyncConfig) -> None:
    def on_ready(url: str) -> None:
        stdout_console.print(f"[green]✓[/green] Serving [cyan]{url}[/cyan]")
        if config.server.open_browser:
            typer.launch(url)

    service = WatchService(
        config,
        build_components(config),
        on_ready=on_ready,
        on_stopped=lambda: stdout_console.print("[cyan]ℹ[/cyan] Watcher stopped"),
    )
    await service.run()


def watch_run(
    config_path: Optional[str] = typer.Option(
        None, "--config", "-c", help="Configuration file (default: themesync.toml, searched upwards)"
    ),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Local server port"),
    no_browser: bool = typer.Option(False, "--no-browser", help="Do not open the browser"),
):
    """
    Watch scripts, styles and theme, upload every change, reload the browser

    Examples:
        themesync watch
        themesync watch -c shop/themesync.toml --port 3100 --no-browser
    """
    try:
        config = load_project_config(_config_path(config_path), {"port": port})
        if no_browser:
            config.server.open_browser = False
        asyncio.run(_watch(config))
    except KeyboardInterrupt:
        stdout_console.print("[cyan]ℹ[/cyan] Interrupted")
    except ConfigError as e:
        stderr_console.print(f"[red]Config Error:[/red] {e}")
        raise typer.Exit(1)
    except ThemeSyncError as e:
        stderr_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)


def deploy_run(
    config_path: Optional[str] = typer.Option(
        None, "--config", "-c", help="Configuration file (default: themesync.toml, searched upwards)"
    ),
    time_limit: Optional[float] = typer.Option(
        None, "--time-limit", "-t", help="Abort the batch after this many seconds"
    ),
):
    """
    Upload every file of the local theme

    Examples:
        themesync deploy
        themesync deploy --time-limit 600
    """
    try:
        config = load_project_config(_config_path(config_path))
        if not config.paths.theme.is_dir():
            raise ConfigError(f"Missing project directories: {config.paths.theme}")

        async def deploy():
            return await run_deploy(build_components(config), time_limit=time_limit)

        outcome = asyncio.run(deploy())
    except ConfigError as e:
        stderr_console.print(f"[red]Config Error:[/red] {e}")
        raise typer.Exit(1)
    except ThemeSyncError as e:
        stderr_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    if isinstance(outcome, Err):
        stderr_console.print(f"[red]Deploy failed:[/red] {outcome.reason}")
        raise typer.Exit(1)
    stdout_console.print(f"[green]✓[/green] Deployed {outcome.value} file(s)")
