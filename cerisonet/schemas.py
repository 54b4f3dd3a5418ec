from pydantic import BaseModel
from typing import Optional, List, Any
from cerisonet.models import SessionUser, AccountDisplay

class UserLogin(BaseModel):
    # Optional so that a missing field is reported as 400, not 422
    email: Optional[str] = None
    password: Optional[str] = None

class LoginResponse(BaseModel):
    success: bool = True
    message: str = "Connexion réussie"
    user: SessionUser

class MessageResponse(BaseModel):
    success: bool = True
    message: str

class UserResponse(BaseModel):
    success: bool = True
    user: SessionUser

class ConnectedUsersResponse(BaseModel):
    success: bool = True
    connectedUsers: List[AccountDisplay]

class FeedQuery(BaseModel):
    page: int = 1
    pageSize: int = 10
    hashtag: Optional[str] = None
    filterByOwner: Optional[str] = None  # "me" | "others" | "all"
    userId: Optional[int] = None
    sortBy: Optional[str] = None  # "date" | "owner" | "popularity"
    sortDirection: str = "desc"  # "asc" | "desc"

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.pageSize

class CommentOut(BaseModel):
    id: Optional[str] = None
    commentedBy: Optional[int] = None
    text: str = ""
    date: Optional[str] = None
    hour: Optional[str] = None
    commentedByName: str
    commentedByAvatar: Optional[str] = None

class PostOut(BaseModel):
    id: str
    content: str
    author: str
    authorAvatar: str = ""
    authorId: Optional[int] = None
    likes: int = 0
    likedBy: List[int] = []
    images: List[Any] = []
    comments: List[CommentOut] = []
    date: str
    hashtags: List[str] = []
    isShared: bool = False
    sharedFrom: Optional[int] = None
    sharedFromName: Optional[str] = None
    originalPost: Optional[str] = None

class FeedPage(BaseModel):
    success: bool = True
    posts: List[PostOut]
    total: int
    page: int
    pageSize: int
    totalPages: int
