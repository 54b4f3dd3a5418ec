from fastapi import APIRouter, Depends
from typing import Optional
from cerisonet.config import settings
from cerisonet.dependencies import get_current_user, get_feed_service
from cerisonet.models import SessionUser
from cerisonet.schemas import FeedPage, FeedQuery
from cerisonet.services.feed_service import FeedService

router = APIRouter()

def _positive_int(value: Optional[str], default: int) -> int:
    """Lenient integer parsing: anything unusable falls back to the default"""
    try:
        number = int(value)
    except (TypeError, ValueError):
        return default
    return number if number > 0 else default

def _optional_int(value: Optional[str]) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None

def get_feed_query(
    page: Optional[str] = None,
    pageSize: Optional[str] = None,
    hashtag: Optional[str] = None,
    filterByOwner: Optional[str] = None,
    userId: Optional[str] = None,
    sortBy: Optional[str] = None,
    sortDirection: Optional[str] = None,
) -> FeedQuery:
    page_size = _positive_int(pageSize, settings.DEFAULT_PAGE_SIZE)
    return FeedQuery(
        page=_positive_int(page, 1),
        pageSize=min(page_size, settings.MAX_PAGE_SIZE),
        hashtag=hashtag or None,
        filterByOwner=filterByOwner or None,
        userId=_optional_int(userId),
        sortBy=sortBy or None,
        sortDirection="asc" if sortDirection == "asc" else "desc",
    )

@router.get("/posts", response_model=FeedPage)
async def list_posts(
    query: FeedQuery = Depends(get_feed_query),
    user: SessionUser = Depends(get_current_user),
    feed: FeedService = Depends(get_feed_service),
):
    """
    Paginated home feed.

    Query parameters:
        page, pageSize: 1-indexed page and its size (defaults 1 and 10)
        hashtag: exact hashtag match
        filterByOwner: 'me', 'others' or 'all', relative to userId (or the session user)
        sortBy: 'date', 'owner' or 'popularity'; sortDirection: 'asc' or 'desc'
    """
    return await feed.list_posts(query, requester_id=user.id)
