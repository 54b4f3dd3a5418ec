import functools
import logging
from datetime import datetime
from typing import List, Optional, Tuple

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING
from pymongo.errors import ConnectionFailure

from cerisonet.config import settings
from cerisonet.errors import (
    AlreadyLiked,
    InvalidInput,
    NotFound,
    PersistenceFailure,
    StorageUnavailable,
)
from cerisonet.models import Comment, Post
from cerisonet.schemas import FeedQuery

logger = logging.getLogger(__name__)

POST_NOT_FOUND = "Post non trouvé"
OWNER_ME = ("me", "mine")
OWNER_OTHERS = "others"


def _storage_errors(func):
    """Report an unreachable MongoDB as StorageUnavailable"""

    @functools.wraps(func)
    async def wrapper(*args, **kwargs):
        try:
            return await func(*args, **kwargs)
        except ConnectionFailure as e:
            logger.error("MongoDB error in %s: %s", func.__name__, e)
            raise StorageUnavailable("Erreur de connexion à la base de données MongoDB") from e

    return wrapper


def parse_post_id(post_id: str) -> ObjectId:
    if not ObjectId.is_valid(post_id):
        raise InvalidInput("Format d'ID de post invalide")
    return ObjectId(post_id)


def now_parts() -> Tuple[datetime, str, str]:
    """Current local time with its date (YYYY-MM-DD) and time of day (HH:MM:SS)"""
    now = datetime.now()
    return now, now.strftime("%Y-%m-%d"), now.strftime("%H:%M:%S")


def build_filter(query: FeedQuery, requester_id: Optional[int] = None) -> dict:
    mongo_filter = {}
    if query.hashtag:
        mongo_filter["hashtags"] = query.hashtag

    owner_id = query.userId if query.userId is not None else requester_id
    if query.filterByOwner and owner_id is not None:
        if query.filterByOwner in OWNER_ME:
            mongo_filter["createdBy"] = owner_id
        elif query.filterByOwner == OWNER_OTHERS:
            mongo_filter["createdBy"] = {"$ne": owner_id}
        # "all" needs no constraint
    return mongo_filter


def build_sort(query: FeedQuery) -> List[Tuple[str, int]]:
    direction = ASCENDING if query.sortDirection == "asc" else DESCENDING
    newest_first = [("date", DESCENDING), ("hour", DESCENDING)]

    if query.sortBy == "date":
        return [("date", direction), ("hour", direction)]
    if query.sortBy == "owner":
        return [("createdBy", direction)] + newest_first
    if query.sortBy == "popularity":
        return [("likes", direction)] + newest_first
    return newest_first


class PostService:
    def __init__(self, db: AsyncIOMotorDatabase):
        self.collection = db[settings.POSTS_COLLECTION]

    @_storage_errors
    async def list_posts(self, query: FeedQuery, requester_id: Optional[int] = None) -> Tuple[List[Post], int]:
        """One page of posts and the total number of posts matching the filter"""
        mongo_filter = build_filter(query, requester_id)
        total = await self.collection.count_documents(mongo_filter)

        cursor = (
            self.collection.find(mongo_filter)
            .sort(build_sort(query))
            .skip(query.skip)
            .limit(query.pageSize)
        )
        posts = [Post.from_document(doc) for doc in await cursor.to_list(length=None)]
        logger.info(
            "Fetched %s posts (page %s, size %s, total %s)",
            len(posts), query.page, query.pageSize, total,
        )
        return posts, total

    @_storage_errors
    async def insert_post(self, post: Post) -> str:
        result = await self.collection.insert_one(post.model_dump(exclude={"id"}))
        if not result.acknowledged:
            raise PersistenceFailure()
        return str(result.inserted_id)

    @_storage_errors
    async def like_post(self, post_id: str, user_id: int) -> int:
        """Register a like and return the new like total.

        The membership check and the write are one conditional update, so two
        concurrent likes by the same account cannot both land.
        """
        oid = parse_post_id(post_id)
        # $push and $inc reject the nulls that legacy documents hold
        await self.collection.update_one({"_id": oid, "likedBy": None}, {"$set": {"likedBy": []}})
        await self.collection.update_one({"_id": oid, "likes": None}, {"$set": {"likes": 0}})

        result = await self.collection.update_one(
            {"_id": oid, "likedBy": {"$ne": user_id}},
            {"$inc": {"likes": 1}, "$push": {"likedBy": user_id}},
        )
        if not result.matched_count:
            if await self.collection.find_one({"_id": oid}, {"_id": 1}):
                raise AlreadyLiked()
            raise NotFound(POST_NOT_FOUND)

        updated = await self.collection.find_one({"_id": oid}, {"likes": 1})
        return (updated or {}).get("likes") or 1

    @_storage_errors
    async def add_comment(self, post_id: str, user_id: int, text: str) -> Comment:
        oid = parse_post_id(post_id)
        _, date_str, hour_str = now_parts()
        comment_id = ObjectId()
        result = await self.collection.update_one(
            {"_id": oid},
            {"$push": {"comments": {
                "id": comment_id,
                "commentedBy": user_id,
                "text": text,
                "date": date_str,
                "hour": hour_str,
            }}},
        )
        if not result.matched_count:
            raise NotFound(POST_NOT_FOUND)
        return Comment(id=comment_id, commentedBy=user_id, text=text, date=date_str, hour=hour_str)

    @_storage_errors
    async def share_post(self, post_id: str, user_id: int) -> Tuple[Post, datetime]:
        """Copy a post into a new shared post owned by user_id.

        The source document is left untouched.
        """
        doc = await self.collection.find_one({"_id": parse_post_id(post_id)})
        if doc is None:
            raise NotFound(POST_NOT_FOUND)
        source = Post.from_document(doc)

        now, date_str, hour_str = now_parts()
        shared = Post(
            body=source.body,
            createdBy=user_id,
            date=date_str,
            hour=hour_str,
            likes=0,
            likedBy=[],
            comments=[],
            hashtags=list(source.hashtags),
            images=list(source.images),
            isShared=True,
            originalPost=source.id,
            sharedFrom=source.createdBy,
        )
        result = await self.collection.insert_one(shared.model_dump(exclude={"id"}))
        if not result.acknowledged:
            raise PersistenceFailure("Erreur lors de la sauvegarde du partage")
        shared.id = str(result.inserted_id)
        logger.info("Post %s shared by account %s as %s", post_id, user_id, shared.id)
        return shared, now
