from .routes import router
from .websocket import ws_router

__all__ = ["router", "ws_router"]
