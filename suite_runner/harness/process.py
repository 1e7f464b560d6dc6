"""Subprocess helpers for the external test harness."""

import asyncio
import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from pathlib import Path

log = logging.getLogger(__name__)

TERMINATE_GRACE_SECONDS = 5.0

# Longest stdout or stderr line, in bytes, a streamed process may write.
STREAM_LINE_LIMIT = 16 * 1024 * 1024


class HarnessError(Exception):
    """Raised when the external test process cannot be run or fails."""


@dataclass(frozen=True, kw_only=True)
class ProcessOutput:
    """Exit status and error stream of a finished process."""

    exit_code: int
    stdout: str
    stderr: str

    @property
    def failed(self) -> bool:
        """Nonzero exit with something on the error stream."""
        return self.exit_code != 0 and bool(self.stderr.strip())


def _decode(data: bytes) -> str:
    return data.decode("utf-8", errors="replace")


async def _start(
    command: Sequence[str], cwd: Path, limit: int = STREAM_LINE_LIMIT
) -> asyncio.subprocess.Process:
    if not command:
        raise HarnessError("Empty command")

    log.debug("Starting process: %s (cwd=%s)", " ".join(command), cwd)
    try:
        return await asyncio.create_subprocess_exec(
            *command,
            cwd=cwd,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            limit=limit,
        )
    except FileNotFoundError as e:
        raise HarnessError(
            f"Command not found: '{command[0]}'. Is it installed and in the PATH?"
        ) from e
    except OSError as e:
        raise HarnessError(f"Failed to start '{command[0]}': {e}") from e


async def run_process(command: Sequence[str], cwd: Path) -> ProcessOutput:
    """Run a command to completion and capture its output."""
    process = await _start(command, cwd)
    stdout, stderr = await process.communicate()

    exit_code = process.returncode if process.returncode is not None else -1
    log.debug("Process exited with code %d", exit_code)
    return ProcessOutput(
        exit_code=exit_code,
        stdout=_decode(stdout),
        stderr=_decode(stderr),
    )


async def _read_lines(
    stream: asyncio.StreamReader, on_line: Callable[[str], None]
) -> None:
    try:
        while line := await stream.readline():
            text = _decode(line).rstrip("\r\n")
            if text:
                on_line(text)
    except ValueError as e:
        raise HarnessError(f"Unreadable output line: {e}") from e


async def _stop(process: asyncio.subprocess.Process) -> None:
    if process.returncode is not None:
        return

    log.info("Terminating test process %d", process.pid)
    try:
        process.terminate()
    except ProcessLookupError:
        pass
    try:
        await asyncio.wait_for(process.wait(), TERMINATE_GRACE_SECONDS)
    except TimeoutError:
        log.warning("Test process %d did not exit, killing it", process.pid)
        process.kill()
        await process.wait()


async def _cancel_all(tasks: Sequence[asyncio.Task[None]]) -> None:
    for task in tasks:
        task.cancel()
    await asyncio.gather(*tasks, return_exceptions=True)


async def stream_process(
    command: Sequence[str],
    cwd: Path,
    on_line: Callable[[str], None],
    *,
    terminate_on_cancel: bool = True,
    line_limit: int = STREAM_LINE_LIMIT,
) -> ProcessOutput:
    """Run a command, handing each non-empty stdout line to ``on_line``.

    Lines are delivered one at a time in the order the process wrote them.
    When the awaiting task is cancelled the process is terminated if
    ``terminate_on_cancel`` is set, otherwise it is left running. A line
    longer than ``line_limit`` bytes stops the process and raises
    ``HarnessError``.
    """
    process = await _start(command, cwd, line_limit)
    if process.stdout is None or process.stderr is None:
        await _stop(process)
        raise HarnessError(f"Output streams of '{command[0]}' are not available")

    stderr_chunks: list[str] = []
    readers = (
        asyncio.create_task(_read_lines(process.stdout, on_line)),
        asyncio.create_task(_read_lines(process.stderr, stderr_chunks.append)),
    )

    try:
        await asyncio.gather(*readers)
        exit_code = await process.wait()
    except asyncio.CancelledError:
        await _cancel_all(readers)
        if terminate_on_cancel:
            await _stop(process)
        else:
            log.warning("Run cancelled, leaving test process %d running", process.pid)
        raise
    except Exception:
        await _cancel_all(readers)
        await _stop(process)
        raise

    log.debug("Process exited with code %d", exit_code)
    return ProcessOutput(
        exit_code=exit_code,
        stdout="",
        stderr="\n".join(stderr_chunks),
    )
