import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from .api import router as commands_router, ws_router
from .core.config import get_settings
from .core.dependencies import get_account_store, get_notifier
from .services import CommandDispatcher, CommandHandler
from .transports import BrokerAdapter, InMemoryBroker, SocketServer

settings = get_settings()
logging.basicConfig(level=settings.log_level)

logger = logging.getLogger(__name__)


def build_command_handler() -> CommandHandler:
    dispatcher = CommandDispatcher(get_account_store(), get_notifier())
    return CommandHandler(dispatcher, max_payload_bytes=settings.max_payload_bytes)

@asynccontextmanager
async def lifespan(app: FastAPI):
    handler = build_command_handler()
    socket_server = None
    broker_adapter = None

    if settings.socket_enabled:
        socket_server = SocketServer(
            handler,
            host=settings.socket_host,
            port=settings.socket_port,
            max_frame_bytes=settings.max_payload_bytes,
        )
        await socket_server.start()

    if settings.broker_enabled:
        app.state.broker = InMemoryBroker()
        broker_adapter = BrokerAdapter(
            app.state.broker,
            handler,
            get_notifier(),
            request_queue=settings.broker_request_queue,
            update_topic=settings.broker_update_topic,
        )
        await broker_adapter.start()

    logger.info("app.started", extra={"app_name": settings.app_name})
    try:
        yield
    finally:
        if broker_adapter is not None:
            await broker_adapter.stop()
        if socket_server is not None:
            await socket_server.stop()

app = FastAPI(title=settings.app_name, lifespan=lifespan)

app.include_router(commands_router)
app.include_router(ws_router)

@app.get("/health")
def read_health() -> dict[str, str]:
    return {"status": "ok"}
