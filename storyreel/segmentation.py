"""
Story segmentation

The pipeline consumes an ordered list of segments numbered 1..N. Producing
that list is the job of a SegmentationClient; two local ones are provided:
ParagraphSegmenter (blank-line separated paragraphs) and MarkupSegmenter
(`<segment number="N">...</segment>` blocks as returned by an LLM prompt).
"""

import html
import re
from typing import List, Protocol, Sequence, Tuple

from .errors import ValidationError
from .models.story import Segment, Story

_SEGMENT_TAG = re.compile(
    r"<segment\b[^>]*?\bnumber\s*=\s*[\"']?(\d+)[\"']?[^>]*>(.*?)</segment\s*>",
    re.IGNORECASE | re.DOTALL,
)
_BLANK_LINES = re.compile(r"\n\s*\n")


class SegmentationClient(Protocol):
    """Splits a story into ordered segments."""

    async def segment(self, story: Story) -> List[Segment]: ...


def validate_segments(segments: Sequence[Segment]) -> List[Segment]:
    """
    Check the segment contract and return the segments sorted by number.

    Raises:
        ValidationError: Empty list, duplicate numbers, numbers that are not
            contiguous from 1, or segments from different stories
    """
    if not segments:
        raise ValidationError("Story produced no segments")

    ordered = sorted(segments, key=lambda s: s.number)
    numbers = [s.number for s in ordered]
    if len(set(numbers)) != len(numbers):
        raise ValidationError(f"Duplicate segment numbers: {numbers}")
    expected = list(range(1, len(ordered) + 1))
    if numbers != expected:
        raise ValidationError(
            f"Segment numbers must be contiguous from 1, got {numbers}"
        )
    story_ids = {s.story_id for s in ordered}
    if len(story_ids) > 1:
        raise ValidationError(f"Segments belong to several stories: {sorted(story_ids)}")
    return ordered


def parse_segment_markup(text: str) -> List[Tuple[int, str]]:
    """
    Extract `(number, text)` pairs from `<segment number="N">` markup.

    Blocks with empty content are skipped. Pairs are returned in ascending
    number order.
    """
    pairs = []
    for match in _SEGMENT_TAG.finditer(text):
        content = html.unescape(match.group(2)).strip()
        if content:
            pairs.append((int(match.group(1)), content))
    return sorted(pairs)


def segments_from_texts(story_id: int, texts: Sequence[str]) -> List[Segment]:
    """Number `texts` 1..N in order."""
    return [
        Segment(story_id=story_id, number=i, text=t.strip())
        for i, t in enumerate(texts, start=1)
    ]


class ParagraphSegmenter:
    """One segment per blank-line separated paragraph."""

    async def segment(self, story: Story) -> List[Segment]:
        paragraphs = [
            " ".join(p.split())
            for p in _BLANK_LINES.split(story.content.strip())
        ]
        return validate_segments(
            segments_from_texts(story.story_id, [p for p in paragraphs if p])
        )


class MarkupSegmenter:
    """Segments taken from `<segment number="N">` blocks in the story text."""

    async def segment(self, story: Story) -> List[Segment]:
        pairs = parse_segment_markup(story.content)
        return validate_segments([
            Segment(story_id=story.story_id, number=n, text=t) for n, t in pairs
        ])
