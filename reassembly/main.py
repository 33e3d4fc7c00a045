"""Entry point for the chunk reassembly service."""

import json
import time
import uuid
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse, PlainTextResponse
from starlette.concurrency import run_in_threadpool

from common.logging_config import get_invocation_logger, setup_logging
from reassembly.config import ReassemblyConfig
from reassembly.handler import ChunkProcessor
from reassembly.schemas.common import HealthResponse, ReadyResponse
from reassembly.sweep_task import ExpirySweepTask

logger = setup_logging('reassembly')


def create_app(config: Optional[ReassemblyConfig] = None) -> FastAPI:
    """
    Build the FastAPI application around one ChunkProcessor.

    Args:
        config: Service configuration (defaults to REASSEMBLY_* environment)

    Returns:
        Configured FastAPI app
    """
    config = config or ReassemblyConfig.from_env()
    processor = ChunkProcessor(config)

    app = FastAPI(
        title="Chunk Reassembly Service",
        description="Rebuilds files delivered as base64 chunk messages",
        version="1.0.0"
    )
    app.state.config = config
    app.state.processor = processor
    app.state.sweep_task = None

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """
        Middleware to log all HTTP requests and responses.
        """
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id

        start_time = time.time()

        logger.info(
            f"Request started: {request.method} {request.url.path} [request_id={request_id}]"
        )

        response = await call_next(request)

        duration = time.time() - start_time

        logger.info(
            f"Request completed: {request.method} {request.url.path} "
            f"status={response.status_code} duration={duration:.3f}s [request_id={request_id}]"
        )

        response.headers["X-Request-ID"] = request_id

        return response

    @app.on_event("startup")
    async def startup_event():
        """
        Create storage areas and start the background sweep if configured.
        """
        logger.info("Reassembly service starting up...")

        config.ensure_directories()
        logger.info(
            f"Storage ready: temp={config.temp_dir} output={config.output_dir} "
            f"dead_letter={config.dead_letter_dir} completion_mode={config.completion_mode}"
        )

        if config.sweep_interval_seconds > 0:
            app.state.sweep_task = ExpirySweepTask(processor.sweeper, config.sweep_interval_seconds)
            await app.state.sweep_task.start()

    @app.on_event("shutdown")
    async def shutdown_event():
        """
        Stop background tasks on application shutdown.
        """
        logger.info("Reassembly service shutting down...")

        if app.state.sweep_task:
            await app.state.sweep_task.stop()
            logger.info("Sweep task stopped")

    @app.post("/api/chunks", response_class=PlainTextResponse)
    async def receive_chunk(request: Request):
        """
        Accept one chunk message.

        Returns:
            - 200 with empty body when the chunk was stored (and, if it
              completed its set, the file was rebuilt)
            - 500 with the error text otherwise
        """
        request_id = getattr(request.state, 'request_id', None)
        log = get_invocation_logger(logger, request_id)

        try:
            body = await request.json()
        except (json.JSONDecodeError, UnicodeDecodeError):
            body = None

        result = await run_in_threadpool(processor.process, body, log)
        return PlainTextResponse(content=result.body, status_code=result.status)

    @app.get("/health", response_model=HealthResponse)
    async def health_check():
        """
        Health check endpoint for container healthchecks.
        Returns 200 if service is alive.
        """
        return HealthResponse(status="healthy", service="reassembly")

    @app.get("/ready")
    async def ready_check():
        """
        Readiness check endpoint.
        Verifies every storage area exists and is writable.
        """
        storage = {}
        for name, directory in (
            ("temp", config.temp_dir),
            ("output", config.output_dir),
            ("dead_letter", config.dead_letter_dir),
            ("claims", config.claims_dir),
        ):
            marker = directory / f".ready-{uuid.uuid4().hex}"
            try:
                directory.mkdir(parents=True, exist_ok=True)
                marker.write_bytes(b"")
                marker.unlink()
                storage[name] = "ok"
            except OSError as e:
                storage[name] = f"error: {e}"

        ready = all(value == "ok" for value in storage.values())
        status_code = status.HTTP_200_OK if ready else status.HTTP_503_SERVICE_UNAVAILABLE

        return JSONResponse(
            status_code=status_code,
            content=ReadyResponse(ready=ready, storage=storage).model_dump()
        )

    return app


app = create_app()


def main() -> None:
    """
    Start the FastAPI server with uvicorn.
    """
    config = app.state.config
    uvicorn.run(
        app,
        host=config.host,
        port=config.port
    )


if __name__ == "__main__":
    main()
