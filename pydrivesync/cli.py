"""CLI interface for PyDriveSync."""

import logging
from pathlib import Path
from typing import Any, Optional

import click

from . import __version__
from .api import DriveClient
from .auth import get_credentials, load_client_config
from .config import config
from .exceptions import DriveSyncError, SyncConfigNotFoundError
from .output import OutputFormatter
from .session import Session, SessionResult
from .sync.state import SyncConfig, load_sync_config

logger = logging.getLogger(__name__)


def _configure_logging(verbose: bool) -> None:
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%H:%M:%S",
        )
        logging.getLogger("pydrivesync").setLevel(logging.DEBUG)
    else:
        logging.basicConfig(level=logging.WARNING)


@click.command(context_settings={"ignore_unknown_options": True})
@click.argument("command", required=False)
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    envvar="PYDRIVESYNC_CONFIG",
    default=None,
    help="Sync configuration file (default: config.json)",
)
@click.option(
    "--client-secret",
    type=click.Path(dir_okay=False, path_type=Path),
    envvar="PYDRIVESYNC_CLIENT_SECRET",
    default=None,
    help="OAuth client secret file (default: client_secret.json)",
)
@click.option(
    "--debounce",
    type=click.FloatRange(min=0.0),
    envvar="PYDRIVESYNC_DEBOUNCE",
    default=0.0,
    show_default=True,
    help="Coalesce writes to the same file within this many seconds",
)
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output")
@click.option("--json", "json_output", is_flag=True, help="Output in JSON format")
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose/debug logging output",
)
@click.version_option(version=__version__)
@click.pass_context
def main(
    ctx: Any,
    command: Optional[str],
    config_path: Optional[Path],
    client_secret: Optional[Path],
    debounce: float,
    quiet: bool,
    json_output: bool,
    verbose: bool,
) -> None:
    """PyDriveSync - Watch local folders and sync their files to Google Drive.

    COMMAND is one of c (configure), s (show configuration), a (add path to
    watch), e (execute) or x (exit). Without COMMAND an interactive menu is
    shown.
    """
    _configure_logging(verbose)
    out = OutputFormatter(json_output=json_output, quiet=quiet)

    config_path = config_path or config.sync_config_path
    client_secret = client_secret or config.client_secret_path
    app_files = config.app_file_names(config_path, client_secret)

    clients: list[DriveClient] = []

    try:
        client_config = load_client_config(client_secret)

        def client_factory() -> DriveClient:
            credentials = get_credentials(client_config, config.token_path)
            client = DriveClient(
                credentials=credentials,
                api_url=config.api_url,
                upload_url=config.upload_url,
            )
            clients.append(client)
            return client

        try:
            sync_config = load_sync_config(config_path)
        except SyncConfigNotFoundError:
            out.info("No app config yet")
            sync_config = SyncConfig()

        session = Session(
            sync_config,
            config_path,
            client_factory,
            output=out,
            app_files=app_files,
            debounce_seconds=debounce,
        )

        if command:
            result = session.run_command(command)
        else:
            result = session.run_menu()
        logger.debug(f"Session finished: {result.value}")

    except DriveSyncError as e:
        logger.debug("Fatal error", exc_info=True)
        out.error(str(e))
        ctx.exit(1)
    finally:
        for client in clients:
            client.close()

    if result == SessionResult.EXIT:
        ctx.exit(0)


if __name__ == "__main__":
    main()
