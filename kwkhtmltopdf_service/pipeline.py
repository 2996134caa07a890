"""
Render Pipeline

Runs the renderer for a decoded RenderRequest and streams its stdout to the
client as the response body.

The HTTP status has to be sent before the first body byte, but the renderer's
outcome is only known once it has exited. The pipeline therefore commits to
200 as soon as the process is running and, if anything fails afterwards,
aborts the connection instead of finishing the body. A client never receives
a complete-looking response for a failed render.

States:
    NOT_STARTED -> STREAMING -> COMPLETED
                            \\-> ABORTED
    NOT_STARTED failures are plain HTTP 500 responses.
"""

import asyncio
import logging
from enum import Enum
from typing import List, Optional

from fastapi.responses import JSONResponse, Response
from starlette.types import Receive, Scope, Send

from .models import RenderRequest
from .options import STDOUT_ARG, redact_args
from .renderer import Renderer, RendererStartError, RenderProcess

logger = logging.getLogger(__name__)

PDF_CONTENT_TYPE = "application/pdf"
TEXT_CONTENT_TYPE = "text/plain"


class RenderState(str, Enum):
    NOT_STARTED = "not-started"
    STREAMING = "streaming"
    COMPLETED = "completed"
    ABORTED = "aborted"


class RenderAborted(Exception):
    """
    Render failed after the 200 status was sent.

    Raised out of the ASGI application so the server drops the connection
    without terminating the response body.
    """


def prepare_invocation(render_request: RenderRequest) -> str:
    """
    Finalize the argument list and pick the response content type.

    Document-mode requests keep their arguments as sent and get plain text;
    PDF requests get one trailing argument telling the renderer to write the
    document to stdout.

    Returns:
        Response content type
    """
    if render_request.doc_output:
        return TEXT_CONTENT_TYPE
    render_request.args.append(STDOUT_ARG)
    return PDF_CONTENT_TYPE


class RenderResponse(Response):
    """
    ASGI response that runs the renderer and streams its output.

    Owns the request workspace from construction on and removes it when the
    response finishes, whatever state it ends in.
    """

    def __init__(
        self,
        render_request: RenderRequest,
        renderer: Renderer,
        timeout: Optional[float] = None,
    ):
        self.render_request = render_request
        self.renderer = renderer
        self.timeout = timeout
        self.state = RenderState.NOT_STARTED
        self.process: Optional[RenderProcess] = None

        content_type = prepare_invocation(render_request)
        self.redacted_args: List[str] = redact_args(render_request.args)

        self.status_code = 200
        self.media_type = content_type
        self.background = None
        # No Content-Length: the body is streamed with chunked encoding.
        self.init_headers({"content-type": content_type})

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        try:
            logger.info(f"{self.redacted_args} starting")
            try:
                self.process = await self.renderer.start(self.render_request.args)
            except RendererStartError as e:
                logger.error(f"{self.redacted_args} {e}")
                error = JSONResponse({"detail": str(e)}, status_code=500)
                await error(scope, receive, send)
                return

            await send({
                "type": "http.response.start",
                "status": self.status_code,
                "headers": self.raw_headers,
            })
            self.state = RenderState.STREAMING

            stream_task = asyncio.ensure_future(self._stream(send))
            disconnect_task = asyncio.ensure_future(self._listen_for_disconnect(receive))
            try:
                done, _ = await asyncio.wait(
                    {stream_task, disconnect_task},
                    timeout=self.timeout,
                    return_when=asyncio.FIRST_COMPLETED,
                )
            finally:
                pending = [t for t in (stream_task, disconnect_task) if not t.done()]
                for task in pending:
                    task.cancel()
                await asyncio.gather(*pending, return_exceptions=True)

            if stream_task in done:
                try:
                    stream_task.result()
                except OSError as e:
                    self._abort(f"streaming failed: {e}")
            elif disconnect_task in done:
                self._abort("client disconnected")
            else:
                self._abort(f"renderer timed out after {self.timeout}s")

            self.state = RenderState.COMPLETED
            logger.info(f"{self.redacted_args} success")
        finally:
            try:
                if self.process is not None and self.state != RenderState.COMPLETED:
                    self.process.kill()
                    await self.process.wait()
            finally:
                self.render_request.workspace.remove()

    async def _listen_for_disconnect(self, receive: Receive) -> None:
        while True:
            message = await receive()
            if message["type"] == "http.disconnect":
                return

    async def _stream(self, send: Send) -> None:
        async for chunk in self.process.stdout_chunks():
            await send({"type": "http.response.body", "body": chunk, "more_body": True})

        returncode = await self.process.wait()
        if returncode != 0:
            self._abort(f"renderer exited with status {returncode}")

        await send({"type": "http.response.body", "body": b"", "more_body": False})

    def _abort(self, reason: str) -> None:
        self.state = RenderState.ABORTED
        logger.error(f"{self.redacted_args} {reason}, aborting connection")
        raise RenderAborted(reason)
