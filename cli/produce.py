"""Produce command - story file to published video"""

import asyncio
import json
import logging
import sys
import time
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.table import Table
from rich import box

from storyreel.config import PipelineConfig
from storyreel.errors import PipelineError, SegmentsFailedError, ValidationError
from storyreel.factory import build_pipeline
from storyreel.models import PipelineResult, Story
from storyreel.segmentation import MarkupSegmenter, ParagraphSegmenter

console = Console()
logger = logging.getLogger(__name__)


def print_result(result: PipelineResult, elapsed: float) -> None:
    table = Table(title=f"Story {result.story_id}", box=box.ROUNDED)
    table.add_column("Segment", style="cyan", justify="right")
    table.add_column("Duration", justify="right")
    table.add_column("Frames", justify="right")

    for clip in result.clips:
        table.add_row(str(clip.number), f"{clip.duration:.2f}s", str(clip.frames))
    table.add_row("[bold]Total[/bold]", f"[bold]{result.total_duration:.2f}s[/bold]", "")

    console.print(table)
    console.print(f"[green]Video:[/green] {result.video_url}")
    console.print(f"[dim]Finished in {elapsed:.1f}s[/dim]")


def result_dict(result: PipelineResult) -> dict:
    return {
        "story_id": result.story_id,
        "video_url": result.video_url,
        "storage_key": result.storage_key,
        "total_duration": result.total_duration,
        "segments": [
            {"number": c.number, "duration": c.duration, "frames": c.frames}
            for c in result.clips
        ],
    }


@click.command()
@click.argument("story_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--story-id", "-i", type=int, required=True, help="Story identifier (used in storage keys)")
@click.option("--mock", "use_mock", is_flag=True, help="Offline providers: silent narration, solid frames, local storage")
@click.option("--markup", is_flag=True, help='Story file contains <segment number="N"> blocks')
@click.option("--local-storage", type=click.Path(file_okay=False, path_type=Path),
              help="Publish into this directory instead of R2")
@click.option("--json", "as_json", is_flag=True, help="Output result as JSON")
def produce_cmd(
    story_file: Path,
    story_id: int,
    use_mock: bool,
    markup: bool,
    local_storage: Optional[Path],
    as_json: bool,
):
    """Turn STORY_FILE into a narrated video and publish it.

    \b
    By default every blank-line separated paragraph becomes one segment.
    """
    story = Story(story_id=story_id, content=story_file.read_text(encoding="utf-8"))
    segmenter = MarkupSegmenter() if markup else ParagraphSegmenter()

    try:
        pipeline = build_pipeline(
            PipelineConfig.from_env(),
            mock=use_mock,
            local_storage=local_storage,
        )
    except ValidationError as e:
        console.print(f"[red]Configuration error:[/red] {e}")
        sys.exit(2)

    def on_segment_complete(number: int, completed: int, total: int) -> None:
        if not as_json:
            console.print(f"  [green]✓[/green] segment {number} ({completed}/{total})")

    if not as_json:
        console.print(f"[bold]Producing story {story_id}[/bold] from {story_file.name}")

    start = time.time()
    try:
        result = asyncio.run(pipeline.produce(story, segmenter, on_segment_complete))
    except SegmentsFailedError as e:
        for failure in e.failures:
            logger.error("Segment %s failed: %s", failure.number, failure.error)
        console.print("[red]Video generation failed.[/red] Run with --verbose for details.")
        sys.exit(1)
    except PipelineError as e:
        logger.error("%s: %s", type(e).__name__, e)
        console.print("[red]Video generation failed.[/red] Run with --verbose for details.")
        sys.exit(1)

    if as_json:
        click.echo(json.dumps(result_dict(result), indent=2))
    else:
        print_result(result, time.time() - start)
