"""Pydantic schemas for cl_notification API."""

from pydantic import BaseModel

from src.cl_notification.domain.models import NotificationMessage


class NotificationItem(BaseModel):
    id: int
    title: str
    body: str
    category: str
    read: bool
    link: str | None
    created_at: str  # ISO8601 string

    @classmethod
    def from_message(cls, msg: NotificationMessage) -> "NotificationItem":
        return cls(
            id=msg.id,
            title=msg.title,
            body=msg.body,
            category=msg.category,
            read=msg.read,
            link=msg.link,
            created_at=msg.created_at.isoformat() if msg.created_at else "",
        )


class NotificationListResponse(BaseModel):
    items: list[NotificationItem]
    unread_count: int


class UnreadCountResponse(BaseModel):
    unread_count: int


class BulkUpdateResponse(BaseModel):
    affected: int
