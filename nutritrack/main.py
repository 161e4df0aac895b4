"""NutriTrack MCP Server - Entry point.

Runs the MCP server with HTTP transport, plus a health check and a download
endpoint for record exports. Uses Starlette with the MCP HTTP app mounted at
the root.
"""

import logging

import uvicorn
from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.routing import Mount, Route

from .core.dates import DateRangePreset
from .core.errors import EncodingError
from .core.export import ExportFormat
from .shell.mcp_server import get_tracker, get_user_id, mcp, settings


logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


# ==================== Route Handlers ====================


async def health_check(request: Request) -> Response:
    """Health check endpoint."""
    return JSONResponse({"status": "healthy", "service": "nutritrack-mcp"})


async def export_history(request: Request) -> Response:
    """Download the record history as CSV or JSON.

    Path: /export/{fmt}; optional query parameter `period` (a date range
    preset, default all_time).
    """
    try:
        fmt = ExportFormat(request.path_params["fmt"].lower())
    except ValueError:
        return JSONResponse(
            {"error": "Unsupported export format. Use csv or json."}, status_code=400
        )

    try:
        preset = DateRangePreset(request.query_params.get("period", "all_time"))
    except ValueError:
        return JSONResponse({"error": "Unknown period."}, status_code=400)
    if preset == DateRangePreset.CUSTOM:
        return JSONResponse({"error": "Custom periods are not supported here."}, status_code=400)

    try:
        payload = get_tracker().export(get_user_id(), fmt, preset)
    except EncodingError as e:
        logger.error("Export failed: %s", str(e))
        return JSONResponse({"error": "Export failed."}, status_code=500)

    filename = f"nutrition_history.{fmt.file_extension}"
    return Response(
        payload,
        media_type=fmt.media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


# ==================== Create ASGI App ====================


def create_app() -> Starlette:
    """Create the Starlette application with MCP at root.

    The MCP streamable_http_app() handles /mcp/ internally when mounted at root.
    We use its lifespan context to ensure proper initialization.
    """
    mcp_app = mcp.streamable_http_app()

    # Custom routes first, then MCP app at root
    routes = [
        Route("/health", health_check, methods=["GET"]),
        Route("/export/{fmt}", export_history, methods=["GET"]),
        Mount("/", app=mcp_app),
    ]

    app = Starlette(
        routes=routes,
        middleware=[
            Middleware(
                CORSMiddleware,
                allow_origins=settings.cors_origins,
                allow_methods=["GET", "POST", "OPTIONS"],
                allow_headers=["*"],
            ),
        ],
        lifespan=mcp_app.router.lifespan_context,
    )

    return app


# Create app at module level for uvicorn
app = create_app()


def main() -> None:
    """Run the server."""
    logger.info("Starting NutriTrack MCP server on %s:%d", settings.host, settings.port)

    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
