"""Socket.IO event dispatch for presence and post interactions.

Connection lifecycle per socket:

- connected, unauthenticated: only ``get-connected-users`` and the
  interaction events are meaningful
- ``authenticate`` with an account id: connection flag written, presence
  entry stored, ``user-connected`` sent to everybody else and the fresh
  ``connected-users`` list sent back
- disconnect: if the socket had authenticated, the entry is dropped, the
  flag cleared and ``user-disconnected`` sent to everybody else

Every interaction event runs inside a failure boundary: whatever goes wrong is
reported to the initiating socket as an ``error`` event and never reaches
other connections.
"""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Optional

import socketio
from motor.motor_asyncio import AsyncIOMotorDatabase
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from cerisonet.errors import CerisonetError, Unexpected
from cerisonet.realtime import handlers
from cerisonet.realtime.events import (
    ADD_COMMENT,
    AUTHENTICATE,
    CONNECTED_USERS,
    ERROR,
    GET_CONNECTED_USERS,
    LIKE_POST,
    SHARE_POST,
    USER_CONNECTED,
    USER_DISCONNECTED,
    AddCommentEvent,
    AuthenticateEvent,
    EventModel,
    HandlerResult,
    LikePostEvent,
    SharePostEvent,
    parse_event,
)
from cerisonet.realtime.presence import PresenceRegistry
from cerisonet.services.account_service import OFFLINE, ONLINE, AccountService
from cerisonet.services.post_service import PostService

logger = logging.getLogger(__name__)

Handler = Callable[[Any, PostService], Awaitable[HandlerResult]]


class RealtimeBridge:
    def __init__(
        self,
        sio: socketio.AsyncServer,
        session_factory: async_sessionmaker[AsyncSession],
        database_getter: Callable[[], Awaitable[AsyncIOMotorDatabase]],
        presence: Optional[PresenceRegistry] = None,
    ) -> None:
        self.sio = sio
        self.session_factory = session_factory
        self.database_getter = database_getter
        self.presence = presence if presence is not None else PresenceRegistry()

    def register(self) -> None:
        self.sio.on("connect", self.on_connect)
        self.sio.on("disconnect", self.on_disconnect)
        self.sio.on(AUTHENTICATE, self.on_authenticate)
        self.sio.on(GET_CONNECTED_USERS, self.on_get_connected_users)
        self.sio.on(LIKE_POST, self.on_like_post)
        self.sio.on(ADD_COMMENT, self.on_add_comment)
        self.sio.on(SHARE_POST, self.on_share_post)

    # -- presence ---------------------------------------------------------

    async def on_connect(self, sid: str, environ: dict, auth: Any = None) -> None:
        logger.info("Socket %s connected", sid)

    async def on_authenticate(self, sid: str, data: Any = None) -> None:
        if not isinstance(data, dict) or data.get("id") in (None, ""):
            return
        try:
            user = AuthenticateEvent.model_validate(data)
        except ValidationError:
            logger.warning("Ignoring authenticate with unusable payload on socket %s", sid)
            return

        try:
            async with self.session_factory() as session:
                accounts = AccountService(session)
                await accounts.set_connection_status(user.id, ONLINE)
                self.presence.add(sid, user)
                logger.info("Account %s authenticated on socket %s", user.id, sid)

                await self.sio.emit(
                    USER_CONNECTED, {"id": user.id, "name": user.name}, skip_sid=sid
                )
                connected = await accounts.get_connected_accounts()
        except CerisonetError as exc:
            logger.warning("Authenticate failed for account %s: %s", user.id, exc.message)
            await self._emit_error(sid, exc.message)
            return
        except Exception:
            logger.exception("Authenticate failed for account %s on socket %s", user.id, sid)
            await self._emit_error(sid, Unexpected().message)
            return

        await self.sio.emit(CONNECTED_USERS, [c.model_dump() for c in connected], to=sid)

    async def on_get_connected_users(self, sid: str, data: Any = None) -> None:
        try:
            async with self.session_factory() as session:
                connected = await AccountService(session).get_connected_accounts()
        except Exception:
            logger.exception("Could not list connected accounts for socket %s", sid)
            connected = []
        await self.sio.emit(CONNECTED_USERS, [c.model_dump() for c in connected], to=sid)

    async def on_disconnect(self, sid: str, reason: Any = None) -> None:
        entry = self.presence.remove_by_sid(sid)
        if entry is None:
            logger.info("Socket %s disconnected before authenticating", sid)
            return

        try:
            async with self.session_factory() as session:
                await AccountService(session).set_connection_status(entry.account_id, OFFLINE)
        except Exception:
            logger.exception("Could not clear connection flag for account %s", entry.account_id)

        logger.info("Account %s disconnected from socket %s", entry.account_id, sid)
        await self.sio.emit(
            USER_DISCONNECTED, {"id": entry.account_id, "name": entry.name}, skip_sid=sid
        )

    # -- interactions -----------------------------------------------------

    async def on_like_post(self, sid: str, data: Any = None) -> Optional[HandlerResult]:
        return await self.dispatch(
            sid, data, LikePostEvent, handlers.like_post,
            incomplete="Données de like incomplètes",
            failure="Erreur lors du traitement du like",
        )

    async def on_add_comment(self, sid: str, data: Any = None) -> Optional[HandlerResult]:
        return await self.dispatch(
            sid, data, AddCommentEvent, handlers.add_comment,
            incomplete="Données de commentaire incomplètes",
            failure="Erreur lors de l'ajout du commentaire",
        )

    async def on_share_post(self, sid: str, data: Any = None) -> Optional[HandlerResult]:
        return await self.dispatch(
            sid, data, SharePostEvent, handlers.share_post,
            incomplete="Les données de partage sont incomplètes",
            failure="Erreur lors du partage du post",
        )

    async def dispatch(
        self,
        sid: str,
        data: Any,
        model: type[EventModel],
        handler: Handler,
        *,
        incomplete: str,
        failure: str,
    ) -> Optional[HandlerResult]:
        """Validate, run the handler and emit its result; report any failure to sid."""
        try:
            event = parse_event(model, data, incomplete)
            db = await self.database_getter()
            result = await handler(event, PostService(db))
        except CerisonetError as exc:
            logger.info("%s rejected for socket %s: %s", handler.__name__, sid, exc.message)
            await self._emit_error(sid, exc.message)
            return None
        except Exception:
            logger.exception("%s failed for socket %s", handler.__name__, sid)
            await self._emit_error(sid, Unexpected(failure).message)
            return None

        if result.broadcast is not None:
            await self.sio.emit(result.broadcast.event, result.broadcast.payload)
        if result.reply is not None:
            await self.sio.emit(result.reply.event, result.reply.payload, to=sid)
        return result

    async def _emit_error(self, sid: str, message: str) -> None:
        await self.sio.emit(ERROR, {"message": message}, to=sid)
