"""
HTTP surface of the refresh trigger and cache reader.

Refresh endpoints authenticate before any pipeline work and answer with the
pipeline's structured result. Read endpoints serve only what is in the
edge cache.

Usage:
    uvicorn catalog_sync.api.app:create_app --factory
"""

from datetime import datetime, timezone

from fastapi import Depends, FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse, Response

from catalog_sync import __version__
from catalog_sync.cache import CacheReadResult
from catalog_sync.config import Settings, load_settings
from catalog_sync.core.errors import AuthenticationError, ConfigurationError
from catalog_sync.core.models import RefreshFailure
from catalog_sync.observability import metrics
from catalog_sync.observability.logger import get_logger
from catalog_sync.pipeline import RefreshPipeline, authenticate

logger = get_logger("api")


def get_pipeline(request: Request) -> RefreshPipeline:
    return request.app.state.pipeline


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def require_refresh_caller(request: Request, settings: Settings = Depends(get_settings)) -> str:
    """Dependency that rejects unauthenticated refresh callers."""
    return authenticate(request.headers, settings)


def _result_response(result, success_status: int = 200) -> JSONResponse:
    status = 500 if isinstance(result, RefreshFailure) else success_status
    return JSONResponse(status_code=status, content=result.model_dump(mode="json", by_alias=True))


def _read_response(result: CacheReadResult) -> JSONResponse:
    return JSONResponse(status_code=result.status_code, content=result.body, headers=result.headers)


def _error_body(message: str) -> dict:
    return {
        "success": False,
        "error": message,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


def create_app(settings: Settings | None = None, pipeline: RefreshPipeline | None = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Runtime settings (loaded from the environment when None)
        pipeline: Pre-built pipeline (built from settings when None)

    Returns:
        FastAPI application
    """
    settings = settings or load_settings()
    app = FastAPI(title="catalog-sync", version=__version__)
    app.state.settings = settings
    app.state.pipeline = pipeline or RefreshPipeline(settings)

    @app.exception_handler(AuthenticationError)
    async def authentication_error_handler(request: Request, exc: AuthenticationError) -> JSONResponse:
        metrics.record_error(exc.error_type, "api")
        logger.warning("Rejected refresh caller", extra={"path": request.url.path})
        return JSONResponse(status_code=401, content=_error_body(str(exc)))

    @app.exception_handler(ConfigurationError)
    async def configuration_error_handler(request: Request, exc: ConfigurationError) -> JSONResponse:
        metrics.record_error(exc.error_type, "api")
        logger.error("Refresh misconfigured", extra={"path": request.url.path, "error_message": str(exc)})
        return JSONResponse(status_code=500, content=_error_body(str(exc)))

    # Schedulers call with GET; manual triggers use POST
    @app.api_route("/refresh", methods=["POST", "GET"])
    async def refresh_catalog(
        caller: str = Depends(require_refresh_caller),
        pipeline: RefreshPipeline = Depends(get_pipeline),
    ) -> JSONResponse:
        logger.info("Catalog refresh triggered", extra={"caller": caller})
        result = await run_in_threadpool(pipeline.run_catalog_refresh)
        return _result_response(result)

    @app.api_route("/refresh-status", methods=["POST", "GET"])
    async def refresh_status(
        caller: str = Depends(require_refresh_caller),
        pipeline: RefreshPipeline = Depends(get_pipeline),
    ) -> JSONResponse:
        logger.info("Liveness refresh triggered", extra={"caller": caller})
        result = await pipeline.run_liveness_refresh()
        return _result_response(result)

    @app.get("/snapshot")
    async def snapshot(pipeline: RefreshPipeline = Depends(get_pipeline)) -> JSONResponse:
        result = await run_in_threadpool(pipeline.reader.read_snapshot)
        return _read_response(result)

    @app.get("/status")
    async def status(pipeline: RefreshPipeline = Depends(get_pipeline)) -> JSONResponse:
        result = await run_in_threadpool(pipeline.reader.read_status)
        return _read_response(result)

    @app.get("/health")
    async def health() -> dict:
        return {"status": "ok", "version": __version__}

    @app.get("/metrics")
    async def prometheus_metrics() -> Response:
        return Response(content=metrics.generate_metrics(), media_type=metrics.get_content_type())

    return app
