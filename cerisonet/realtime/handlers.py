"""Like, comment and share handlers.

Handlers receive an already validated event and the post service, perform the
document write and describe what should be emitted. Domain errors propagate
to the bridge, which reports them to the initiating connection.
"""

from __future__ import annotations

import logging

from cerisonet.realtime.events import (
    NEW_COMMENT,
    POST_LIKED,
    POST_SHARED,
    SHARE_SUCCESS,
    AddCommentEvent,
    Emission,
    HandlerResult,
    LikePostEvent,
    SharePostEvent,
)
from cerisonet.services.post_service import PostService

logger = logging.getLogger(__name__)


async def like_post(event: LikePostEvent, posts: PostService) -> HandlerResult:
    logger.info("Account %s likes post %s", event.userId, event.postId)
    total_likes = await posts.like_post(event.postId, event.userId)
    return HandlerResult(
        broadcast=Emission(POST_LIKED, {
            "postId": event.postId,
            "userId": event.userId,
            "totalLikes": total_likes,
        })
    )


async def add_comment(event: AddCommentEvent, posts: PostService) -> HandlerResult:
    logger.info("Account %s comments on post %s", event.userId, event.postId)
    comment = await posts.add_comment(event.postId, event.userId, event.content)
    return HandlerResult(
        broadcast=Emission(NEW_COMMENT, {
            "id": comment.id,
            "postId": event.postId,
            "userId": event.userId,
            "userName": event.userName,
            "commentedByName": event.userName,
            "text": comment.text,
            "date": comment.date,
            "hour": comment.hour,
        })
    )


async def share_post(event: SharePostEvent, posts: PostService) -> HandlerResult:
    logger.info("Account %s shares post %s", event.userId, event.postId)
    shared, shared_at = await posts.share_post(event.postId, event.userId)
    return HandlerResult(
        broadcast=Emission(POST_SHARED, {
            "postId": event.postId,
            "newPostId": shared.id,
            "userId": event.userId,
            "userName": event.userName,
            "date": shared_at.isoformat(),
        }),
        reply=Emission(SHARE_SUCCESS, {
            "success": True,
            "message": "Post partagé avec succès",
            "newPostId": shared.id,
        }),
    )
