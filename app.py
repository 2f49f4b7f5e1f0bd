from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, WebSocket
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse

from backend import RoomStore
from connections import ConnectionManager
from constants import CORS_ORIGINS, LOG_FILE, LOG_LEVEL
from janitor import Janitor
from logging_config import get_logger, setup_logging
from presence import PresenceManager
from relay import RelaySession
from routers.rooms import rooms_router
from translation import GeminiTranslator, TranslationGateway, Translator

# Setup logging
setup_logging(log_level=LOG_LEVEL, log_file=LOG_FILE)
logger = get_logger(__name__)


def create_app(
    store: Optional[RoomStore] = None,
    translator: Optional[Translator] = None,
    gateway: Optional[TranslationGateway] = None,
    presence: Optional[PresenceManager] = None,
    janitor: Optional[Janitor] = None,
) -> FastAPI:
    """Build the relay application.

    Every collaborator can be injected; anything left out is built from the
    environment settings in ``constants``.
    """
    store = store or (presence.store if presence else RoomStore())
    connections = presence.connections if presence else ConnectionManager()
    presence = presence or PresenceManager(store, connections)
    gateway = gateway or TranslationGateway(translator or GeminiTranslator())
    janitor = janitor or Janitor(store)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        janitor.start()
        yield
        await janitor.stop()
        await presence.shutdown()
        logger.info("Relay shut down")

    app = FastAPI(lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    app.state.store = store
    app.state.connections = connections
    app.state.presence = presence
    app.state.gateway = gateway
    app.state.janitor = janitor

    app.include_router(rooms_router)

    @app.get("/", response_class=PlainTextResponse)
    async def index():
        return "Server is running"

    @app.websocket("/socket")
    async def websocket_endpoint(websocket: WebSocket):
        session = RelaySession(
            websocket,
            store=store,
            presence=presence,
            gateway=gateway,
            connections=connections,
        )
        await session.run()

    logger.info("FastAPI application initialized")
    return app


app = create_app()
