"""System status command"""

import asyncio
import json

import click
from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich import box

from storyreel.config import PipelineConfig
from storyreel.secrets import list_api_keys
from storyreel.tools import check_tool
from storyreel.workspace import WorkspaceManager

console = Console()


async def _check_tools() -> dict:
    ffmpeg, ffprobe = await asyncio.gather(check_tool("ffmpeg"), check_tool("ffprobe"))
    return {"ffmpeg": ffmpeg, "ffprobe": ffprobe}


def get_status_dict() -> dict:
    config = PipelineConfig.from_env()
    return {
        "tools": asyncio.run(_check_tools()),
        "keys": list_api_keys(),
        "missing": config.missing_fields(),
        "settings": {
            "tts_model": config.tts_model,
            "tts_voice": config.tts_voice,
            "image_model": config.image_model,
            "frame_rate": config.video.frame_rate,
            "resolution": f"{config.video.width}x{config.video.height}",
            "encoder_concurrency": config.encoder_concurrency,
            "storage_bucket": config.storage_bucket,
            "workspace_root": str(config.workspace_root),
            "active_workspaces": len(WorkspaceManager(config.workspace_root).active()),
        },
    }


@click.command()
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def status_cmd(as_json: bool):
    """Show FFmpeg availability and configuration status"""
    status = get_status_dict()

    if as_json:
        click.echo(json.dumps(status, indent=2))
        return

    console.print(Panel.fit(
        "[bold blue]storyreel[/bold blue]\n"
        "Narrated story video pipeline",
        border_style="blue"
    ))

    tool_table = Table(title="Tools", box=box.ROUNDED)
    tool_table.add_column("Tool", style="cyan")
    tool_table.add_column("Status")
    tool_table.add_column("Version", style="dim")
    for name, info in status["tools"].items():
        state = "[green]✓ Found[/green]" if info["installed"] else "[red]✗ Missing[/red]"
        tool_table.add_row(name, state, info.get("version") or info.get("error") or "")
    console.print(tool_table)

    key_table = Table(title="API Keys", box=box.ROUNDED)
    key_table.add_column("Key", style="cyan")
    key_table.add_column("Status")
    for key, source in status["keys"].items():
        if source == "keychain":
            display = "[green]Keychain[/green]"
        elif source == "env":
            display = "[yellow]Env var[/yellow]"
        else:
            display = "[red]Not set[/red]"
        key_table.add_row(key, display)
    console.print(key_table)

    settings_table = Table(title="Settings", box=box.ROUNDED)
    settings_table.add_column("Setting", style="cyan")
    settings_table.add_column("Value")
    for key, value in status["settings"].items():
        settings_table.add_row(key, str(value))
    console.print(settings_table)

    if status["missing"]:
        console.print(f"[yellow]Missing for live runs:[/yellow] {', '.join(status['missing'])}")
    else:
        console.print("[green]Ready for live runs[/green]")
