"""
CLI commands for secure API key management.

Usage:
    storyreel secrets list          # Show configured keys
    storyreel secrets set KEY       # Store a key securely
    storyreel secrets delete KEY    # Remove a key
"""

import click
from rich.console import Console
from rich.table import Table

from storyreel.secrets import KNOWN_KEYS, delete_api_key, list_api_keys, set_api_key

console = Console()


@click.group(name="secrets")
def secrets_cli():
    """Manage API keys securely using OS keychain."""
    pass


@secrets_cli.command(name="list")
def list_keys():
    """List all API keys and their status."""
    status = list_api_keys()

    table = Table(title="API Key Status")
    table.add_column("Key", style="cyan")
    table.add_column("Description", style="dim")
    table.add_column("Status", style="bold")

    for key_name, description in KNOWN_KEYS.items():
        key_status = status.get(key_name, "not_set")

        if key_status == "keychain":
            status_display = "[green]Keychain[/green]"
        elif key_status == "env":
            status_display = "[yellow]Env var[/yellow]"
        else:
            status_display = "[red]Not set[/red]"

        table.add_row(key_name, description, status_display)

    console.print(table)


@secrets_cli.command(name="set")
@click.argument("key_name")
@click.option("--value", "-v", help="API key value (will prompt if not provided)")
def set_key(key_name: str, value: str = None):
    """Store an API key in the secure keychain."""
    key_name = key_name.upper()
    if key_name not in KNOWN_KEYS:
        console.print(f"[red]Error:[/red] {key_name} is not a recognized key name.")
        console.print(f"Known keys: {', '.join(KNOWN_KEYS)}")
        raise SystemExit(1)

    if not value:
        value = click.prompt(f"Enter value for {key_name}", hide_input=True)

    if set_api_key(key_name, value):
        console.print(f"[green]Success:[/green] Stored {key_name} in secure keychain")
    else:
        console.print(f"[red]Error:[/red] Failed to store {key_name}")
        raise SystemExit(1)


@secrets_cli.command(name="delete")
@click.argument("key_name")
@click.option("--force", "-f", is_flag=True, help="Don't ask for confirmation")
def delete_key(key_name: str, force: bool = False):
    """Delete an API key from the keychain."""
    key_name = key_name.upper()

    if not force:
        if not click.confirm(f"Delete {key_name} from keychain?"):
            return

    if delete_api_key(key_name):
        console.print(f"[green]Success:[/green] Deleted {key_name} from keychain")
    else:
        console.print(f"[yellow]Warning:[/yellow] {key_name} not found in keychain")
