"""
Main CLI application
"""
import typer
from pathlib import Path
from typing import Optional

from ...core.logging import setup_logging, get_logger
from .resources import register_resources_apps
from .watch import register_watch_commands

logger = get_logger(__name__)

# Create main app
app = typer.Typer(
    name="themesync",
    add_completion=False,
    help="Theme asset sync, deploy and live-reload toolchain",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

# watch / deploy directly on the main app
register_watch_commands(app)

# resources / metafields sub-apps, customer command
register_resources_apps(app)


@app.callback()
def main(
    log_level: str = typer.Option(
        "INFO",
        "--log-level",
        "-l",
        help="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    ),
    log_file: Optional[Path] = typer.Option(
        None,
        "--log-file",
        help="Log file path",
    ),
):
    """
    Themesync - keep a remote theme in sync with local sources

    Use subcommands to perform different operations:
    - watch: Watch, transform and upload changes, with live reload
    - deploy: Upload the whole theme
    - resources / metafields / customer: Pull and push store data
    """
    # Setup logging
    setup_logging(level=log_level, log_file=log_file)


def run():
    """CLI entry point"""
    app()


if __name__ == "__main__":
    run()
