"""Process-wide Socket.IO server.

Mounted next to the FastAPI app in ``cerisonet.main`` under
``settings.SOCKETIO_PATH``. All handlers live on the ``RealtimeBridge``.
"""

from __future__ import annotations

import socketio

from cerisonet.config import settings
from cerisonet.database import async_session
from cerisonet.db import get_database
from cerisonet.realtime.bridge import RealtimeBridge

sio = socketio.AsyncServer(
    async_mode="asgi",
    cors_allowed_origins=[settings.FRONTEND_URL],
    logger=False,
    engineio_logger=False,
)

bridge = RealtimeBridge(sio, async_session, get_database)
bridge.register()
