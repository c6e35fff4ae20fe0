import asyncio
import shlex
from typing import Callable, List, Optional

from pydantic import BaseModel

from logger import setup_logger
from progress import Progress, ProgressParser

logger = setup_logger()

ProgressCallback = Callable[[Progress], None]


class CommandError(Exception):
    def __init__(self, cmd: List[str], returncode: int, stderr: str):
        self.cmd = cmd
        self.returncode = returncode
        self.stderr = stderr
        tool = cmd[0] if cmd else "command"
        super().__init__(f"{tool} exited with code {returncode}: {stderr.strip()}")


class CommandResult(BaseModel):
    returncode: int
    stderr: str = ""
    progress: Optional[Progress] = None


async def run_command(
    cmd: List[str],
    on_progress: Optional[ProgressCallback] = None,
    echo_stderr: bool = False,
) -> CommandResult:
    """
    Runs a subprocess to completion.

    Progress blocks written to stdout (ffmpeg's `-progress pipe:1`) are parsed
    and handed to on_progress. Raises CommandError with the captured stderr on
    a non-zero exit.
    """
    logger.debug(f"Running: {' '.join(shlex.quote(c) for c in cmd)}")

    proc = await asyncio.create_subprocess_exec(
        *cmd,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )

    parser = ProgressParser()
    last_progress: Optional[Progress] = None
    stderr_lines: List[str] = []

    async def read_stdout():
        nonlocal last_progress
        while True:
            line = await proc.stdout.readline()
            if not line:
                break
            snapshot = parser.feed(line.decode("utf-8", errors="replace"))
            if snapshot is None:
                continue
            last_progress = snapshot
            if on_progress is not None:
                on_progress(snapshot)

    async def read_stderr():
        while True:
            line = await proc.stderr.readline()
            if not line:
                break
            text = line.decode("utf-8", errors="replace").rstrip()
            stderr_lines.append(text)
            if echo_stderr:
                logger.debug(text)

    await asyncio.gather(read_stdout(), read_stderr())
    returncode = await proc.wait()
    stderr = "\n".join(stderr_lines)

    if returncode != 0:
        raise CommandError(cmd, returncode, stderr)

    return CommandResult(returncode=returncode, stderr=stderr, progress=last_progress)
