"""
Per-run scratch directories

Every pipeline run gets its own directory under the workspace root, named
after the story id plus a random suffix, so concurrent runs (even for the
same story) never share files. Release is best-effort: failures are logged
and never raised, so cleanup cannot mask the outcome of the run.
"""

import logging
import shutil
import tempfile
import time
from pathlib import Path
from typing import List, Optional, Union

logger = logging.getLogger(__name__)

RUN_PREFIX = "story_"


class Workspace:
    """Scratch directory owned by one pipeline run."""

    def __init__(self, story_id: int, path: Path):
        self.story_id = story_id
        self.path = path
        self.released = False

    def __repr__(self) -> str:
        return f"Workspace(story_id={self.story_id}, path={str(self.path)!r})"

    def _name(self, suffix: str) -> Path:
        return self.path / f"story_{self.story_id}_{suffix}"

    # Deterministic file names: story id + segment number keep every
    # concurrent writer on its own file.

    def audio_path(self, number: int, fmt: str = "mp3") -> Path:
        return self._name(f"segment_{number}_narration.{fmt}")

    def clip_path(self, number: int) -> Path:
        return self._name(f"segment_{number}_clip.mp4")

    def manifest_path(self) -> Path:
        return self._name("concat.txt")

    def video_path(self) -> Path:
        return self._name("video.mp4")

    def release(self) -> bool:
        """
        Remove the directory tree.

        Returns:
            True if nothing is left behind, False if removal failed
        """
        if self.released:
            return True
        self.released = True
        if not self.path.exists():
            return True
        try:
            shutil.rmtree(self.path)
        except OSError as e:
            logger.warning("Failed to remove workspace %s: %s", self.path, e)
            return False
        logger.debug("Removed workspace %s", self.path)
        return True


class WorkspaceManager:
    """Allocates and sweeps run workspaces under one root directory."""

    def __init__(self, root: Union[str, Path] = "temp"):
        self.root = Path(root)

    def allocate(self, story_id: int) -> Workspace:
        """Create a fresh, run-unique directory for `story_id`."""
        self.root.mkdir(parents=True, exist_ok=True)
        path = Path(tempfile.mkdtemp(prefix=f"{RUN_PREFIX}{story_id}_", dir=self.root))
        logger.debug("Allocated workspace %s for story %s", path, story_id)
        return Workspace(story_id, path)

    def active(self) -> List[Path]:
        """Run directories currently present under the root."""
        if not self.root.exists():
            return []
        return sorted(
            p for p in self.root.iterdir()
            if p.is_dir() and p.name.startswith(RUN_PREFIX)
        )

    def sweep_stale(self, max_age_hours: float = 24, now: Optional[float] = None) -> List[Path]:
        """
        Delete run directories older than `max_age_hours` based on mtime.

        Left-overs only exist when a process died before releasing its
        workspace. Removal failures are logged and skipped.

        Returns:
            Directories that were removed
        """
        cutoff = (now if now is not None else time.time()) - (max_age_hours * 3600)
        removed: List[Path] = []
        for item in self.active():
            try:
                if item.stat().st_mtime >= cutoff:
                    continue
                shutil.rmtree(item)
            except OSError as e:
                logger.warning("Failed to remove stale workspace %s: %s", item, e)
                continue
            logger.info("Removed stale workspace %s", item.name)
            removed.append(item)
        return removed
