from pydantic import BaseModel
from typing import Optional
from datetime import datetime


class PostCreate(BaseModel):
    content: str
    title: Optional[str] = None
    type: str = "post"
    client_id: Optional[str] = None
    scheduled_at: Optional[datetime] = None


class PostResponse(BaseModel):
    id: str
    content: str
    title: Optional[str] = None
    type: str
    status: str
    scheduled_at: Optional[datetime] = None
    published_at: Optional[datetime] = None
    linkedin_post_id: Optional[str] = None

    class Config:
        from_attributes = True
