"""
Renderer Process Module

Capability interface for the external renderer plus the subprocess-backed
implementation:
- start the renderer with a given argument list
- expose its stdout as a stream of byte chunks
- report the exit status once output is exhausted

The render pipeline only talks to `Renderer`/`RenderProcess`, so tests can
swap in a fake process without a real binary.
"""

import asyncio
import logging
import shutil
from abc import ABC, abstractmethod
from typing import AsyncIterator, List, Optional

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 64 * 1024


class RendererStartError(Exception):
    """The renderer process could not be started."""


class RenderProcess(ABC):
    """A started renderer process."""

    @abstractmethod
    def stdout_chunks(self) -> AsyncIterator[bytes]:
        """Yield stdout bytes as they become available, until EOF."""

    @abstractmethod
    async def wait(self) -> int:
        """Wait for the process to exit and return its exit code."""

    @abstractmethod
    def kill(self) -> None:
        """Terminate the process if it is still running."""


class Renderer(ABC):
    """Launches renderer processes."""

    @abstractmethod
    async def start(self, args: List[str]) -> RenderProcess:
        """
        Start the renderer with args.

        Raises:
            RendererStartError: if the process could not be launched
        """


class SubprocessRenderProcess(RenderProcess):
    """RenderProcess backed by an asyncio subprocess."""

    def __init__(self, process: asyncio.subprocess.Process, chunk_size: int = DEFAULT_CHUNK_SIZE):
        self.process = process
        self.chunk_size = chunk_size

    @property
    def pid(self) -> int:
        return self.process.pid

    async def stdout_chunks(self) -> AsyncIterator[bytes]:
        while True:
            chunk = await self.process.stdout.read(self.chunk_size)
            if not chunk:
                return
            yield chunk

    async def wait(self) -> int:
        return await self.process.wait()

    def kill(self) -> None:
        if self.process.returncode is not None:
            return
        try:
            self.process.kill()
        except ProcessLookupError:
            pass


class SubprocessRenderer(Renderer):
    """
    Runs the renderer binary as a child process.

    stdout is piped back to the caller; stderr goes straight to this
    service's own stderr so renderer diagnostics end up in the service log.
    """

    def __init__(self, bin_path: str = "wkhtmltopdf", chunk_size: int = DEFAULT_CHUNK_SIZE):
        self.bin_path = bin_path
        self.chunk_size = chunk_size

    def resolve(self) -> Optional[str]:
        """Return the full path of the binary, or None if it cannot be found."""
        return shutil.which(self.bin_path)

    async def start(self, args: List[str]) -> SubprocessRenderProcess:
        try:
            process = await asyncio.create_subprocess_exec(
                self.bin_path,
                *args,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=None,  # Inherit service stderr
            )
        except (OSError, ValueError) as e:
            raise RendererStartError(f"cannot start {self.bin_path}: {e}") from e

        logger.debug(f"Started {self.bin_path} (pid={process.pid})")
        return SubprocessRenderProcess(process, chunk_size=self.chunk_size)
