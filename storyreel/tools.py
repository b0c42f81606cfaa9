"""
External tool runner

Every FFmpeg/FFprobe invocation in the pipeline goes through run_tool(), which
starts the process, feeds optional stdin bytes, captures both output streams
and enforces a time limit.
"""

import asyncio
import logging
import os
import shutil
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from .errors import ToolNotFoundError, ToolTimeoutError

logger = logging.getLogger(__name__)


@dataclass
class ToolResult:
    """Captured outcome of one external tool invocation"""
    args: List[str]
    returncode: int
    stdout: bytes
    stderr: bytes

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def diagnostics(self) -> str:
        """Decoded stderr, trimmed to the last lines FFmpeg prints on failure"""
        text = self.stderr.decode("utf-8", errors="replace").strip()
        lines = text.splitlines()
        if len(lines) > 40:
            lines = lines[-40:]
        return "\n".join(lines)


def _find_tool(name: str) -> str:
    found = shutil.which(name)
    if found:
        return found

    # Check common locations on Windows
    common_paths = [
        rf"C:\ffmpeg\bin\{name}.exe",
        rf"C:\Program Files\ffmpeg\bin\{name}.exe",
    ]
    for path in common_paths:
        if os.path.exists(path):
            return path

    raise ToolNotFoundError(
        f"{name} not found. Please install FFmpeg and add it to your PATH."
    )


def find_ffmpeg() -> str:
    """Find the FFmpeg executable or raise ToolNotFoundError."""
    return _find_tool("ffmpeg")


def find_ffprobe() -> str:
    """Find the FFprobe executable or raise ToolNotFoundError."""
    return _find_tool("ffprobe")


async def run_tool(
    args: Sequence[str],
    input_bytes: Optional[bytes] = None,
    timeout: Optional[float] = None,
) -> ToolResult:
    """
    Run an external tool to completion.

    Args:
        args: Executable followed by its arguments
        input_bytes: Bytes written to the tool's stdin, if any
        timeout: Seconds before the process is killed

    Returns:
        ToolResult with exit code and captured streams. A non-zero exit is
        not raised here; callers translate it into their own error type.

    Raises:
        ToolNotFoundError: If the executable cannot be started
        ToolTimeoutError: If the process exceeds `timeout`
    """
    argv = [str(a) for a in args]
    logger.debug("Running %s", " ".join(argv))

    try:
        process = await asyncio.create_subprocess_exec(
            *argv,
            stdin=asyncio.subprocess.PIPE if input_bytes is not None else asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except FileNotFoundError as e:
        raise ToolNotFoundError(f"{argv[0]} could not be started: {e}") from e

    try:
        stdout, stderr = await asyncio.wait_for(
            process.communicate(input=input_bytes), timeout=timeout
        )
    except asyncio.TimeoutError:
        process.kill()
        await process.wait()
        raise ToolTimeoutError(
            f"{os.path.basename(argv[0])} exceeded {timeout}s and was killed"
        )
    except asyncio.CancelledError:
        # Never leave an orphaned encoder behind a cancelled task
        if process.returncode is None:
            process.kill()
            await process.wait()
        raise

    return ToolResult(
        args=argv,
        returncode=process.returncode,
        stdout=stdout or b"",
        stderr=stderr or b"",
    )


async def check_tool(name: str) -> Dict[str, Any]:
    """
    Check if a tool is properly installed.

    Returns:
        Dict with installation status and version info
    """
    try:
        path = _find_tool(name)
        result = await run_tool([path, "-version"], timeout=10)
    except (ToolNotFoundError, ToolTimeoutError) as e:
        return {"installed": False, "path": None, "version": None, "error": str(e)}

    if result.ok:
        version_line = result.stdout.decode(errors="replace").split("\n")[0]
        return {"installed": True, "path": path, "version": version_line}
    return {
        "installed": False,
        "path": path,
        "version": None,
        "error": result.diagnostics,
    }
