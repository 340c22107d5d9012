from fastapi import FastAPI

from backend import RoomRegistry
from constants import LOG_FILE, LOG_LEVEL
from dispatcher import MessageDispatcher
from logging_config import get_logger, setup_logging
from routers.rooms import rooms_router

# Setup logging
setup_logging(log_level=LOG_LEVEL, log_file=LOG_FILE)
logger = get_logger(__name__)


def create_app(registry: RoomRegistry = None) -> FastAPI:
    """Build the relay application.

    Every app owns its own registry and connection tables; nothing is shared
    between instances, and nothing outlives the process.
    """
    app = FastAPI(title="Room Relay")
    app.state.dispatcher = MessageDispatcher(registry=registry or RoomRegistry())
    app.include_router(rooms_router)
    logger.info("FastAPI application initialized")
    return app


app = create_app()
