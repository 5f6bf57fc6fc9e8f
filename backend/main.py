import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, WebSocket
from fastapi.middleware.cors import CORSMiddleware
import uvicorn

import config
from api.gateway import relay_endpoint
from collab import RoomRegistry
from storage import BlueprintStore, HttpBlueprintStore, MemoryBlueprintStore

logger = logging.getLogger(__name__)


def build_store(kind: str = config.BLUEPRINT_STORE) -> BlueprintStore:
    """Create the configured blueprint store."""
    if kind == "http":
        return HttpBlueprintStore(config.BLUEPRINTS_API_URL, timeout=config.BLUEPRINTS_API_TIMEOUT)
    if kind == "memory":
        return MemoryBlueprintStore()
    raise ValueError(f"Unsupported BLUEPRINT_STORE '{kind}'. Use 'http' or 'memory'")


def create_app(
    store: Optional[BlueprintStore] = None,
    registry: Optional[RoomRegistry] = None,
) -> FastAPI:
    """
    Build the relay application.

    The registry and store live for the whole process and are shared by every
    connection; tests pass their own.
    """
    if store is None:
        store = build_store()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Log where the relay listens; close the persistence client on shutdown"""
        logger.info(f"Relay ready on :{config.PORT}")
        logger.info(f"-> Frontend allowed origin: {', '.join(config.FRONTEND_ORIGINS)}")
        if store.kind == "http":
            logger.info(f"-> Blueprints API: {config.BLUEPRINTS_API_URL}")
        else:
            logger.info(f"-> Blueprint store: {store.kind}")
        yield
        await store.close()

    app = FastAPI(
        title="Blueprints Relay",
        description="Real-time collaboration relay for blueprints",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.store = store
    app.state.registry = registry if registry is not None else RoomRegistry()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.FRONTEND_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    @app.websocket("/ws")
    async def websocket_handler(websocket: WebSocket):
        """WebSocket endpoint for collaborative blueprint editing.

        Clients join blueprint rooms, send points, and receive the stored
        blueprint after every change made in their rooms.
        """
        await relay_endpoint(websocket, app.state.registry, app.state.store)

    @app.get("/health")
    async def health_check():
        """Health check endpoint"""
        return {"status": "healthy", "service": "blueprints-relay", "store": app.state.store.kind}

    @app.get("/api/rooms")
    async def list_rooms():
        """Active rooms with their member counts"""
        return app.state.registry.active_rooms()

    @app.get("/")
    async def root():
        """Root endpoint with API information"""
        return {
            "message": "Blueprints Relay",
            "version": "1.0.0",
            "endpoints": {
                "health": "/health",
                "rooms": "/api/rooms",
                "websocket": "/ws",
            },
            "events": {
                "inbound": ["join-room", "draw-event", "leave-room"],
                "outbound": ["blueprint-update", "warning", "error", "ack"],
            },
        }

    return app


logging.basicConfig(
    level=getattr(logging, config.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)

app = create_app()


def run():
    """Run the relay with uvicorn"""
    uvicorn.run(
        "main:app",
        host=config.HOST,
        port=config.PORT,
        log_level=config.LOG_LEVEL.lower()
    )


if __name__ == "__main__":
    run()
