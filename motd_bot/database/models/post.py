# motd_bot/database/models/post.py
from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass
class Post:
    id: int
    body: str
    author_id: Optional[int]
    author_name: Optional[str]
    channel_ref: Optional[int]        # channel the announcement was sent to
    external_message_ref: Optional[int]  # id of the announcement message
    cross_posted: bool
    external_post_ref: Optional[str]  # URI returned by the social platform
    cross_posted_at: Optional[datetime]
    created_at: datetime

    @classmethod
    def from_row(cls, row) -> "Post":
        m = row._mapping
        return cls(
            id=m["id"],
            body=m["body"],
            author_id=m["author_id"],
            author_name=m["author_name"],
            channel_ref=m["channel_ref"],
            external_message_ref=m["external_message_ref"],
            cross_posted=bool(m["cross_posted"]),
            external_post_ref=m["external_post_ref"],
            cross_posted_at=m["cross_posted_at"],
            created_at=m["created_at"],
        )
