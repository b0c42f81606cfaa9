"""Cleanup command - remove abandoned run workspaces"""

import click
from rich.console import Console

from storyreel.config import PipelineConfig
from storyreel.workspace import WorkspaceManager

console = Console()


@click.command()
@click.option("--max-age-hours", type=float, default=24.0, show_default=True,
              help="Remove workspaces not modified for this many hours")
@click.option("--root", type=click.Path(file_okay=False), help="Workspace root (default: WORKSPACE_ROOT)")
def cleanup_cmd(max_age_hours: float, root: str):
    """Remove workspaces left behind by interrupted runs"""
    manager = WorkspaceManager(root or PipelineConfig.from_env().workspace_root)
    removed = manager.sweep_stale(max_age_hours=max_age_hours)

    if not removed:
        console.print(f"[dim]No stale workspaces under {manager.root}[/dim]")
        return
    for path in removed:
        console.print(f"  [green]✓[/green] removed {path.name}")
    console.print(f"Removed {len(removed)} workspace(s)")
