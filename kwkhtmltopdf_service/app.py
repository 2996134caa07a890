"""
kwkhtmltopdf Service - FastAPI application.

Endpoints:
- /status: liveness probe, always 200 with an empty body
- POST / and /pdf: multipart upload of renderer options and files,
  answered with the renderer's streamed output
"""

import logging
from typing import Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import Response
from starlette.types import ASGIApp, Receive, Scope, Send

from . import __version__
from .config import ServiceSettings, validate_config_on_startup
from .decoder import DecodeError, decode_render_request
from .models import Workspace, WorkspaceError
from .pipeline import RenderResponse
from .renderer import Renderer, SubprocessRenderer

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S"
)
logger = logging.getLogger(__name__)

STATUS_PATH = "/status"


class AccessLogMiddleware:
    """Logs method and path of every HTTP request except the status probe."""

    def __init__(self, app: ASGIApp):
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "http" and scope["path"] != STATUS_PATH:
            logger.info(f"{scope['method']} {scope['path']}")
        await self.app(scope, receive, send)


def create_app(
    settings: Optional[ServiceSettings] = None,
    renderer: Optional[Renderer] = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Service settings (loaded from the environment if omitted)
        renderer: Renderer used for all requests (subprocess renderer built
            from settings if omitted)
    """
    if settings is None:
        settings = validate_config_on_startup()
    if renderer is None:
        renderer = SubprocessRenderer(
            settings.kwkhtmltopdf_bin,
            chunk_size=settings.kwkhtmltopdf_chunk_size,
        )

    app = FastAPI(
        title="kwkhtmltopdf",
        version=__version__,
        description="HTML to PDF conversion through an external renderer binary",
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.settings = settings
    app.state.renderer = renderer
    app.add_middleware(AccessLogMiddleware)

    @app.on_event("startup")
    async def check_renderer_on_startup():
        """Warn early if the renderer binary cannot be found."""
        if not isinstance(app.state.renderer, SubprocessRenderer):
            return
        resolved = app.state.renderer.resolve()
        if resolved:
            logger.info(f"Renderer binary: {resolved}")
        else:
            logger.error(
                f"Renderer binary not found: {app.state.renderer.bin_path}. "
                "Renders will fail until it is installed or KWKHTMLTOPDF_BIN is set."
            )

    @app.api_route(
        STATUS_PATH,
        methods=["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    )
    async def status() -> Response:
        """Liveness probe."""
        return Response(status_code=200)

    @app.post("/")
    @app.post("/pdf")
    async def render(request: Request) -> Response:
        """
        Render the uploaded document.

        The multipart body is decoded into renderer arguments, then the
        renderer output is streamed back. Errors before the renderer starts
        are regular HTTP errors; later failures abort the connection.

        Raises:
            HTTPException: 400 for bad uploads, 404 if no workspace could be
                allocated
        """
        try:
            workspace = Workspace()
        except WorkspaceError as e:
            logger.error(str(e))
            raise HTTPException(status_code=404, detail=str(e))

        try:
            render_request = await decode_render_request(request, workspace)
        except DecodeError as e:
            workspace.remove()
            logger.error(f"{request.method} {request.url.path}: {e.message}")
            raise HTTPException(status_code=e.status_code, detail=e.message)
        except BaseException:
            workspace.remove()
            raise

        # The response owns the workspace from here on.
        return RenderResponse(
            render_request,
            request.app.state.renderer,
            timeout=request.app.state.settings.kwkhtmltopdf_timeout,
        )

    return app


app = create_app()
