"""
HTTP Server
FastAPI app: realtime channel over WebSocket, job enqueue, health and metrics.
"""

import asyncio
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, HTTPException, WebSocket, WebSocketDisconnect
from fastapi.responses import Response
from injector import Injector
from prometheus_client import CONTENT_TYPE_LATEST

from core import JobInProgressError, ValidationError, configure_logging, create_container, get_logger, get_settings
from handlers import JobDispatcher
from models.loader import ModelLoader
from monitoring import metrics_collector
from streaming import EventBus, channel_for_user

logger = get_logger(__name__)


def create_app(container: Injector) -> FastAPI:
    """Build the app around a configured container."""
    bus = container.get(EventBus)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("service_ready")
        yield
        await container.get(JobDispatcher).shutdown()
        ModelLoader.unload()
        logger.info("stopped")

    app = FastAPI(title="Mockup Generation Service", version="0.1.0", lifespan=lifespan)
    app.state.container = container
    app.state.bus = bus

    @app.get("/health")
    async def health() -> dict:
        return {"status": "ok", "channels": len(bus.channels())}

    @app.get("/metrics")
    async def metrics() -> Response:
        return Response(content=metrics_collector.get_metrics(), media_type=CONTENT_TYPE_LATEST)

    @app.post("/jobs/generate", status_code=202)
    async def enqueue_generation(message: dict) -> dict:
        dispatcher = container.get(JobDispatcher)
        try:
            run_id = await dispatcher.submit_generation(message)
        except ValidationError as e:
            raise HTTPException(status_code=422, detail={"message": str(e), "errors": e.details}) from e
        except JobInProgressError as e:
            raise HTTPException(status_code=409, detail=str(e)) from e
        return {"runId": run_id}

    @app.post("/jobs/regenerate", status_code=202)
    async def enqueue_regeneration(message: dict) -> dict:
        dispatcher = container.get(JobDispatcher)
        try:
            run_id = await dispatcher.submit_regeneration(message)
        except ValidationError as e:
            raise HTTPException(status_code=422, detail={"message": str(e), "errors": e.details}) from e
        return {"runId": run_id}

    @app.websocket("/realtime/{user_id}")
    async def realtime(websocket: WebSocket, user_id: str) -> None:
        await websocket.accept()
        subscription = bus.subscribe(channel_for_user(user_id))
        logger.info("ws_connected", user_id=user_id)

        async def watch_disconnect() -> None:
            try:
                while True:
                    await websocket.receive_text()
            except WebSocketDisconnect:
                subscription.close()

        watcher = asyncio.create_task(watch_disconnect())
        try:
            async for event in subscription:
                await websocket.send_json(event.to_wire())
        except WebSocketDisconnect:
            logger.info("ws_send_after_disconnect", user_id=user_id)
        finally:
            subscription.close()
            watcher.cancel()
            logger.info("ws_disconnected", user_id=user_id)

    return app


def main() -> None:
    """Entry point - run the HTTP server."""
    settings = get_settings()
    configure_logging(settings.log_level, settings.json_logs)
    logger.info("starting", host=settings.host, port=settings.port, model=settings.gemini_model)

    app = create_app(create_container(settings))
    uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)


if __name__ == "__main__":
    main()
