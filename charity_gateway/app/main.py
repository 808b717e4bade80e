from contextlib import AsyncExitStack, asynccontextmanager
from typing import Any, AsyncGenerator, Optional

import httpx
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from charity_gateway.app.api import prompts_router, tools_router
from charity_gateway.app.core.config import Settings
from charity_gateway.app.core.config import settings as default_settings
from charity_gateway.app.core.http_client import init_http_client
from charity_gateway.app.core.logging import get_logger, setup_logging
from charity_gateway.app.exceptions import CharityGatewayError
from charity_gateway.app.middleware.request_id import RequestIdMiddleware, get_request_id
from charity_gateway.app.providers.charity_api import CharityAPIClient
from charity_gateway.app.services.rate_limiter import RateLimiter, RateLimitSweeper


def create_app(
    settings: Optional[Settings] = None,
    http_client: Optional[httpx.AsyncClient] = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Settings to use instead of the environment-loaded defaults
        http_client: Shared upstream client to use instead of creating one;
            the caller keeps ownership and closes it

    Returns:
        Configured FastAPI application instance
    """
    settings = settings or default_settings

    # Setup logging
    setup_logging(settings.log_level, settings.log_format)
    logger = get_logger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Application lifespan context manager.

        Builds the upstream client and the rate limiter on startup, runs the
        limiter sweeper in the background and stops it on shutdown.
        """
        api_config = settings.to_api_config()
        limiter = RateLimiter(
            max_requests=settings.rate_limit_max_requests,
            window_ms=settings.rate_limit_window_ms,
        )
        sweeper = RateLimitSweeper(limiter, interval=settings.rate_limit_sweep_interval_seconds)

        async with AsyncExitStack() as stack:
            client = http_client
            if client is None:
                # Shared client with connection pooling, closed on shutdown
                client = await stack.enter_async_context(
                    init_http_client(timeout_ms=api_config.timeout_ms)
                )

            app.state.charity_client = CharityAPIClient(api_config, http_client=client)
            app.state.rate_limiter = limiter
            app.state.sweeper = sweeper

            await sweeper.start()
            stack.push_async_callback(sweeper.stop)

            logger.info(
                "Application startup complete",
                extra={
                    "base_url": api_config.base_url,
                    "api_key_configured": api_config.api_key is not None,
                    "rate_limit": f"{limiter.max_requests}/{limiter.window_ms}ms",
                    "debug_mode": settings.debug,
                },
            )
            yield

        logger.info("Application shutdown complete")

    app = FastAPI(
        title="Charity Gateway",
        description="Rate-limited gateway to the CharityAPI IRS nonprofit database",
        version="1.0.0",
        lifespan=lifespan,
    )

    # Request ID middleware for tracing
    app.add_middleware(RequestIdMiddleware)

    # Include routers
    app.include_router(tools_router)
    app.include_router(prompts_router)

    @app.get("/health")
    async def health(request: Request) -> dict[str, Any]:
        """Health check with limiter and upstream details."""
        limiter: RateLimiter = request.app.state.rate_limiter
        sweeper: RateLimitSweeper = request.app.state.sweeper
        return {
            "status": "ok",
            "components": {
                "rate_limiter": {
                    "status": "ok" if sweeper.is_running else "degraded",
                    "tracked_keys": len(limiter.keys()),
                    "max_requests": limiter.max_requests,
                    "window_ms": limiter.window_ms,
                },
                "upstream": {
                    "base_url": request.app.state.charity_client.base_url,
                },
            },
        }

    @app.exception_handler(CharityGatewayError)
    async def gateway_error_handler(request: Request, exc: CharityGatewayError) -> JSONResponse:
        """Handle gateway errors with their own status and error code."""
        content = {"error": exc.error_code, "message": exc.message}
        field = getattr(exc, "field", None)
        if field:
            content["field"] = field
        return JSONResponse(status_code=exc.status_code or 500, content=content)

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Global exception handler for unhandled exceptions.

        Never returns a traceback. Debug mode adds the exception message.
        """
        request_id = get_request_id(request)

        logger.exception(
            f"Unhandled exception [request_id={request_id}]",
            extra={
                "request_id": request_id,
                "exception_type": type(exc).__name__,
            },
        )

        if settings.debug:
            return JSONResponse(
                status_code=500,
                content={
                    "error": "internal_error",
                    "message": str(exc),
                    "exception_type": type(exc).__name__,
                    "request_id": request_id,
                },
            )

        return JSONResponse(
            status_code=500,
            content={
                "error": "internal_error",
                "message": "Internal server error",
                "request_id": request_id,
            },
        )

    return app


# Create the application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
