import math
from datetime import datetime
from typing import Dict, List, Optional

from cerisonet.models import AccountDisplay, Post
from cerisonet.schemas import CommentOut, FeedPage, FeedQuery, PostOut
from cerisonet.services.account_service import AccountService
from cerisonet.services.post_service import PostService

UNKNOWN_USER = "Utilisateur inconnu"


def _name(accounts: Dict[int, AccountDisplay], account_id: Optional[int]) -> str:
    account = accounts.get(account_id)
    return account.name if account else UNKNOWN_USER


def _avatar(accounts: Dict[int, AccountDisplay], account_id: Optional[int]) -> Optional[str]:
    account = accounts.get(account_id)
    return account.avatar if account else None


def enrich_post(post: Post, accounts: Dict[int, AccountDisplay]) -> PostOut:
    comments = [
        CommentOut(
            **comment.model_dump(),
            commentedByName=_name(accounts, comment.commentedBy),
            commentedByAvatar=_avatar(accounts, comment.commentedBy),
        )
        for comment in post.comments
    ]

    shared_from_name = None
    if post.isShared and post.sharedFrom is not None:
        shared_from_name = _name(accounts, post.sharedFrom)

    if post.date and post.hour:
        date = f"{post.date}T{post.hour}"
    else:
        date = datetime.now().isoformat()

    return PostOut(
        id=post.id,
        content=post.body or "",
        author=_name(accounts, post.createdBy),
        authorAvatar=_avatar(accounts, post.createdBy) or "",
        authorId=post.createdBy,
        likes=post.likes,
        likedBy=post.likedBy,
        images=post.images,
        comments=comments,
        date=date,
        hashtags=post.hashtags,
        isShared=post.isShared,
        sharedFrom=post.sharedFrom,
        sharedFromName=shared_from_name,
        originalPost=post.originalPost,
    )


class FeedService:
    def __init__(self, posts: PostService, accounts: AccountService):
        self.posts = posts
        self.accounts = accounts

    async def list_posts(self, query: FeedQuery, requester_id: Optional[int] = None) -> FeedPage:
        posts, total = await self.posts.list_posts(query, requester_id)

        # One account lookup for every author, commenter and original author on the page
        account_ids: List[int] = []
        for post in posts:
            account_ids.append(post.createdBy)
            account_ids.append(post.sharedFrom)
            account_ids.extend(c.commentedBy for c in post.comments)
        accounts = await self.accounts.get_display_map(account_ids)

        return FeedPage(
            posts=[enrich_post(post, accounts) for post in posts],
            total=total,
            page=query.page,
            pageSize=query.pageSize,
            totalPages=math.ceil(total / query.pageSize),
        )
