"""CLI entry point for ClaudePilot."""

import logging
from logging.handlers import RotatingFileHandler

import click
from rich.console import Console

from . import __version__
from .config import LOG_FILE, Config, load_config
from .session import SessionManager, seed_demo_sessions
from .tui_textual import ClaudePilotApp

console = Console()
err_console = Console(stderr=True)


def configure_logging(config: Config) -> None:
    """Configure logging based on config (opt-in debug logging)."""
    if config.debug_logging:
        # Debug logging enabled - use rotating file handler
        LOG_FILE.parent.mkdir(parents=True, exist_ok=True)
        handler = RotatingFileHandler(
            LOG_FILE,
            maxBytes=5 * 1024 * 1024,  # 5MB
            backupCount=3,
        )
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            handlers=[handler],
        )
        logging.info("ClaudePilot starting (debug logging enabled)")
    else:
        # Default: only warn+ so TUI stays clean
        logging.basicConfig(
            level=logging.WARNING,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        )


@click.group(invoke_without_command=True)
@click.pass_context
def main(ctx: click.Context) -> None:
    """ClaudePilot - Terminal-based TUI for managing multiple Claude AI sessions."""
    if ctx.invoked_subcommand is None:
        run_dashboard()


@main.command()
def version() -> None:
    """Print the version number of ClaudePilot."""
    console.print(f"ClaudePilot v{__version__}")


def run_dashboard(config: Config | None = None) -> None:
    """Run the dashboard TUI until the user quits."""
    if config is None:
        config = load_config()
    configure_logging(config)

    manager = SessionManager()
    if config.demo_sessions:
        seed_demo_sessions(manager)

    app = None
    try:
        app = ClaudePilotApp(manager, config=config)
        app.run()
    except KeyboardInterrupt:
        pass
    except Exception as e:
        logging.getLogger(__name__).exception("TUI failed")
        err_console.print(f"[red]Error starting TUI:[/red] {e}")
        raise SystemExit(1)
    finally:
        if app is not None:
            app.model.shutdown()
        console.print("\n[dim]Thanks for using ClaudePilot![/dim]")

    if app.return_code:
        raise SystemExit(app.return_code)


if __name__ == "__main__":
    main()
