"""
Story video pipeline

One run takes a story's segments through

    narration + image (concurrently) -> encode   for every segment
    -> concatenate (ascending segment order) -> publish -> workspace cleanup

Segment tasks run concurrently. Encoder processes are capped by a counting
semaphore shared by every run of the pipeline; network calls use a looser
cap. Each task writes its clip into the result slot `number - 1`, so the
final order never depends on completion order. Segment failures are
collected; once every task has finished the run fails with one
SegmentsFailedError and nothing is concatenated or published.
"""

import asyncio
import logging
from pathlib import Path
from typing import Awaitable, Callable, List, Optional, Sequence

from .concat import Concatenator
from .encoder import SegmentEncoder
from .errors import SegmentFailure, SegmentsFailedError, ValidationError
from .imagery import ImageSynthesizer
from .models.render import SegmentClip
from .models.story import PipelineResult, Segment, Story
from .narration import NarrationSynthesizer
from .publisher import ArtifactPublisher
from .segmentation import SegmentationClient, validate_segments
from .workspace import Workspace, WorkspaceManager

logger = logging.getLogger(__name__)

# callback(segment_number, completed_count, total)
ProgressCallback = Callable[[int, int, int], None]


class SegmentScheduler:
    """
    Runs one task per segment concurrently and gathers ordered results.

    Args:
        cancel_on_failure: Cancel the remaining tasks as soon as one fails
            instead of letting every task finish. Cancelled tasks are not
            reported as failures.
        on_segment_complete: Called after each successful segment
    """

    def __init__(
        self,
        cancel_on_failure: bool = False,
        on_segment_complete: Optional[ProgressCallback] = None,
    ):
        self.cancel_on_failure = cancel_on_failure
        self.on_segment_complete = on_segment_complete

    async def run(
        self,
        segments: Sequence[Segment],
        task: Callable[[Segment], Awaitable[SegmentClip]],
    ) -> List[SegmentClip]:
        """
        Run `task` for every segment.

        `segments` must be numbered 1..N (see validate_segments).

        Returns:
            Clips indexed by segment number - 1

        Raises:
            SegmentsFailedError: One or more tasks failed
        """
        total = len(segments)
        results: List[Optional[SegmentClip]] = [None] * total
        failures: List[SegmentFailure] = []
        tasks: List[asyncio.Task] = []
        completed = 0

        async def guarded(segment: Segment) -> None:
            nonlocal completed
            try:
                clip = await task(segment)
                results[segment.number - 1] = clip
                completed += 1
                if self.on_segment_complete:
                    self.on_segment_complete(segment.number, completed, total)
            except Exception as e:
                logger.warning(
                    "Story %s segment %s failed: %s: %s",
                    segment.story_id, segment.number, type(e).__name__, e,
                )
                failures.append(SegmentFailure(segment.number, e))
                if self.cancel_on_failure:
                    current = asyncio.current_task()
                    for t in tasks:
                        if t is not current and not t.done():
                            t.cancel()

        for segment in segments:
            tasks.append(asyncio.create_task(guarded(segment), name=f"segment-{segment.number}"))

        try:
            await asyncio.gather(*tasks, return_exceptions=True)
        except asyncio.CancelledError:
            for t in tasks:
                t.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

        if failures:
            raise SegmentsFailedError(failures)

        unfilled = [i + 1 for i, clip in enumerate(results) if clip is None]
        if unfilled:
            # Only reachable if a task was cancelled from outside the run
            raise SegmentsFailedError([
                SegmentFailure(n, asyncio.CancelledError("segment task cancelled"))
                for n in unfilled
            ])
        return results


class PipelineRun:
    """
    State of one pipeline execution.

    Owns the segments' working state and the workspace; shares the
    pipeline's encoder and network limiters.
    """

    def __init__(
        self,
        pipeline: "StoryVideoPipeline",
        story: Story,
        segments: List[Segment],
        workspace: Workspace,
        on_segment_complete: Optional[ProgressCallback] = None,
    ):
        self.pipeline = pipeline
        self.story = story
        self.segments = segments
        self.workspace = workspace
        self.scheduler = SegmentScheduler(
            cancel_on_failure=pipeline.cancel_on_failure,
            on_segment_complete=on_segment_complete,
        )

    async def _network(self, fn: Callable[..., Awaitable], *args):
        async with self.pipeline.network_slots:
            return await fn(*args)

    async def process_segment(self, segment: Segment) -> SegmentClip:
        """Narration and image concurrently, then encode under the encoder cap."""
        narration = asyncio.ensure_future(
            self._network(self.pipeline.narration.synthesize, segment, self.workspace)
        )
        image = asyncio.ensure_future(
            self._network(self.pipeline.imagery.generate, segment)
        )
        try:
            await asyncio.gather(narration, image)
        except BaseException:
            for t in (narration, image):
                t.cancel()
            await asyncio.gather(narration, image, return_exceptions=True)
            raise

        async with self.pipeline.encoder_slots:
            return await self.pipeline.encoder.encode(segment, self.workspace)

    async def execute(self) -> PipelineResult:
        clips = await self.scheduler.run(self.segments, self.process_segment)
        video_path = await self.pipeline.concatenator.concatenate(clips, self.workspace)
        key, url = await self.pipeline.publisher.publish(self.story.story_id, Path(video_path))
        return PipelineResult(
            story_id=self.story.story_id,
            video_url=url,
            storage_key=key,
            clips=clips,
        )


class StoryVideoPipeline:
    """
    Produces and publishes the narrated video for a story.

    Collaborators are passed in already constructed so any of them can be
    replaced (see factory.build_pipeline for the production wiring).
    """

    def __init__(
        self,
        narration: NarrationSynthesizer,
        imagery: ImageSynthesizer,
        encoder: SegmentEncoder,
        concatenator: Concatenator,
        publisher: ArtifactPublisher,
        workspaces: WorkspaceManager,
        encoder_concurrency: int = 2,
        network_concurrency: int = 8,
        cancel_on_failure: bool = False,
    ):
        if encoder_concurrency < 1:
            raise ValueError("encoder_concurrency must be at least 1")
        if network_concurrency < 1:
            raise ValueError("network_concurrency must be at least 1")
        self.narration = narration
        self.imagery = imagery
        self.encoder = encoder
        self.concatenator = concatenator
        self.publisher = publisher
        self.workspaces = workspaces
        self.encoder_concurrency = encoder_concurrency
        self.network_concurrency = network_concurrency
        self.cancel_on_failure = cancel_on_failure
        self.encoder_slots = asyncio.Semaphore(encoder_concurrency)
        self.network_slots = asyncio.Semaphore(network_concurrency)

    async def run(
        self,
        story: Story,
        segments: Sequence[Segment],
        on_segment_complete: Optional[ProgressCallback] = None,
    ) -> PipelineResult:
        """
        Produce, publish and attach the video for `story`.

        Raises:
            ValidationError: Before any work, for unusable segments
            SegmentsFailedError: One or more segments failed
            ConcatenationError: Clips could not be joined
            PublishError: The video could not be stored
        """
        ordered = validate_segments(segments)
        foreign = [s.number for s in ordered if s.story_id != story.story_id]
        if foreign:
            raise ValidationError(
                f"Segments {foreign} do not belong to story {story.story_id}"
            )

        workspace = self.workspaces.allocate(story.story_id)
        logger.info(
            "Story %s: starting run with %d segment(s) in %s",
            story.story_id, len(ordered), workspace.path,
        )
        run = PipelineRun(self, story, ordered, workspace, on_segment_complete)
        try:
            result = await run.execute()
        finally:
            workspace.release()

        story.video_url = result.video_url
        logger.info(
            "Story %s: video ready (%.2fs) at %s",
            story.story_id, result.total_duration, result.video_url,
        )
        return result

    async def produce(
        self,
        story: Story,
        segmenter: SegmentationClient,
        on_segment_complete: Optional[ProgressCallback] = None,
    ) -> PipelineResult:
        """Segment `story` with `segmenter`, then run."""
        segments = await segmenter.segment(story)
        return await self.run(story, segments, on_segment_complete)
