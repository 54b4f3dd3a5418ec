"""Socket event payloads.

Each client event has a model; payloads are validated before any handler
runs. Handlers return a ``HandlerResult`` describing what to emit.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from cerisonet.errors import InvalidInput

# client -> server
AUTHENTICATE = "authenticate"
GET_CONNECTED_USERS = "get-connected-users"
LIKE_POST = "like-post"
ADD_COMMENT = "add-comment"
SHARE_POST = "share-post"

# server -> client
CONNECTED_USERS = "connected-users"
USER_CONNECTED = "user-connected"
USER_DISCONNECTED = "user-disconnected"
POST_LIKED = "post-liked"
NEW_COMMENT = "new-comment"
POST_SHARED = "post-shared"
SHARE_SUCCESS = "share-success"
ERROR = "error"


class EventModel(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)


class AuthenticateEvent(EventModel):
    id: int
    email: Optional[str] = None
    firstName: str = ""
    lastName: str = ""

    @property
    def name(self) -> str:
        return f"{self.firstName} {self.lastName}".strip()


class LikePostEvent(EventModel):
    postId: str = Field(min_length=1)
    userId: int


class AddCommentEvent(EventModel):
    postId: str = Field(min_length=1)
    userId: int
    content: str = Field(min_length=1)
    userName: Optional[str] = None


class SharePostEvent(EventModel):
    postId: str = Field(min_length=1)
    userId: int
    userName: Optional[str] = None


E = TypeVar("E", bound=EventModel)


def parse_event(model: type[E], data: Any, message: str) -> E:
    """Validate a raw payload, raising InvalidInput(message) when it does not fit"""
    if not isinstance(data, dict):
        raise InvalidInput(message)
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        raise InvalidInput(message) from exc


@dataclass(frozen=True)
class Emission:
    event: str
    payload: Any


@dataclass(frozen=True)
class HandlerResult:
    broadcast: Optional[Emission] = None  # to every connection
    reply: Optional[Emission] = None  # to the initiating connection only
