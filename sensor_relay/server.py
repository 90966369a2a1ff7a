from contextlib import asynccontextmanager
from datetime import datetime
from typing import Optional
import logging

from fastapi import FastAPI, WebSocket, WebSocketDisconnect, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from . import __version__
from .relay import Relay

logger = logging.getLogger(__name__)


def create_app(relay: Optional[Relay] = None) -> FastAPI:
    relay = relay or Relay()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Sensor relay starting up...")
        yield
        logger.info("Sensor relay shutting down...")

    app = FastAPI(
        title="Sensor Relay",
        description="WebSocket relay that classifies producers and rebroadcasts their readings",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.relay = relay

    # dashboards are served from elsewhere; let them reach the REST endpoints
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    async def relay_endpoint(websocket: WebSocket):
        remote = f"{websocket.client.host}:{websocket.client.port}" if websocket.client else None
        # registered before accept so the record exists the moment the peer sees the handshake
        conn = relay.connect(websocket, remote=remote)

        try:
            await websocket.accept()
            relay.open(conn)

            while True:
                message = await websocket.receive()
                if message["type"] == "websocket.disconnect":
                    break

                raw = message.get("text")
                if raw is None:
                    raw = message.get("bytes")
                if raw is None:
                    continue

                try:
                    await relay.handle_message(conn, raw)
                except Exception as e:
                    logger.exception(f"Message processing error for {conn.id}: {e}")

        except WebSocketDisconnect:
            pass
        except Exception as e:
            relay.fail(conn, e)
        finally:
            relay.disconnect(conn)

    app.add_api_websocket_route("/", relay_endpoint)
    app.add_api_websocket_route("/ws", relay_endpoint)

    @app.get("/")
    async def root():
        return {
            "message": "Sensor Relay",
            "version": __version__,
            "status": "running",
            "connected_clients": len(relay.registry),
        }

    @app.get("/health")
    async def health_check():
        return {
            "status": "healthy",
            "timestamp": datetime.now().isoformat(),
            "connected_clients": len(relay.registry),
        }

    @app.get("/clients")
    async def get_clients():
        """List every tracked connection with its category and state"""
        clients = [c.as_dict() for c in relay.registry.snapshot()]
        return {"connected_clients": len(clients), "clients": clients}

    @app.get("/clients/{client_id}")
    async def get_client(client_id: str):
        conn = relay.registry.get(client_id)
        if conn is None:
            raise HTTPException(status_code=404, detail="Client not found")
        return conn.as_dict()

    return app


app = create_app()


if __name__ == "__main__":
    from .start import main
    main()
