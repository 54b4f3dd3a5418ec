from pydantic import BaseModel, field_validator
from typing import Optional, List, Any

class Account(BaseModel):
    id: int
    email: str
    password_hash: str
    first_name: str = ""
    last_name: str = ""
    avatar: Optional[str] = None
    connection_status: int = 0

    @property
    def display_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

class AccountDisplay(BaseModel):
    """Public view of an account, as shown next to posts and in presence lists"""
    id: int
    firstName: str = ""
    lastName: str = ""
    avatar: Optional[str] = None

    @property
    def name(self) -> str:
        return f"{self.firstName} {self.lastName}".strip()


class SessionUser(BaseModel):
    id: int
    email: str
    firstName: str = ""
    lastName: str = ""
    lastLogin: str

class Comment(BaseModel):
    id: Optional[str] = None
    commentedBy: Optional[int] = None
    text: str = ""
    date: Optional[str] = None
    hour: Optional[str] = None

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, value: Any) -> Optional[str]:
        return None if value is None else str(value)

class Post(BaseModel):
    id: Optional[str] = None
    body: str = ""
    createdBy: Optional[int] = None
    date: Optional[str] = None   # YYYY-MM-DD
    hour: Optional[str] = None   # HH:MM:SS
    likes: int = 0
    likedBy: List[int] = []
    comments: List[Comment] = []
    hashtags: List[str] = []
    images: List[Any] = []
    isShared: bool = False
    originalPost: Optional[str] = None
    sharedFrom: Optional[int] = None

    @classmethod
    def from_document(cls, doc: dict) -> "Post":
        data = dict(doc)
        data["id"] = str(data.pop("_id")) if "_id" in data else data.get("id")
        if data.get("originalPost") is not None:
            data["originalPost"] = str(data["originalPost"])
        # Legacy documents may store null instead of an empty list
        for key in ("likedBy", "comments", "hashtags", "images"):
            if data.get(key) is None:
                data[key] = []
        if data.get("likes") is None:
            data["likes"] = 0
        if data.get("body") is None:
            data["body"] = ""
        data["isShared"] = bool(data.get("isShared"))
        return cls(**data)
