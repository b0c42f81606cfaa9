"""storyreel CLI"""

import logging

import click
from dotenv import load_dotenv
from rich.console import Console
from rich.logging import RichHandler

from .produce import produce_cmd
from .status import status_cmd
from .cleanup import cleanup_cmd
from .secrets import secrets_cli

# Load .env file at CLI startup
load_dotenv()

console = Console(stderr=True)


def setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_time=False, show_path=False)],
        force=True,
    )
    if verbose:
        # boto/urllib3 are very chatty at DEBUG
        for name in ("botocore", "boto3", "urllib3", "s3transfer"):
            logging.getLogger(name).setLevel(logging.INFO)


@click.group()
@click.version_option(version="0.1.0")
@click.option("--verbose", "-V", is_flag=True, help="Show debug logging")
def main(verbose: bool):
    """storyreel - narrated story videos from text

    \b
    Quick Start:
      storyreel produce story.txt --story-id 1 --mock
      storyreel produce story.txt --story-id 1

    \b
    Commands:
      produce   Turn a story file into a published video
      status    Show FFmpeg and configuration status
      cleanup   Remove abandoned run workspaces
      secrets   Manage API keys in the OS keychain
    """
    setup_logging(verbose)


main.add_command(produce_cmd, name="produce")
main.add_command(status_cmd, name="status")
main.add_command(cleanup_cmd, name="cleanup")
main.add_command(secrets_cli, name="secrets")


if __name__ == "__main__":
    main()
