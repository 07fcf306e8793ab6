"""Domain models for cl_notification: pure dataclasses."""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class PendingNotification:
    """A message decided on but not yet written to the recipient's inbox."""
    user_id: int
    title: str
    body: str
    category: str          # NotificationCategory value
    link: str | None = None


@dataclass
class NotificationMessage:
    id: int                # monotonic, defines per-user creation order
    user_id: int
    title: str
    body: str
    category: str
    read: bool = False
    link: str | None = None
    created_at: datetime | None = None
