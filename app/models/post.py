"""Post model.

Likes and comments are child rows owned by the post. Every change to either
collection also rewrites the post row, and ``version`` makes that write a
compare-and-set: a concurrent writer that loaded an older version fails with
``StaleDataError`` instead of silently overwriting.
"""
import uuid

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String, Text, Uuid
from sqlalchemy.ext.orderinglist import ordering_list
from sqlalchemy.orm import relationship

from app.db.session import Base, utcnow

CONTENT_MAX_LENGTH = 2000


class Post(Base):
    __tablename__ = "posts"
    __table_args__ = (Index("ix_posts_created_at_id", "created_at", "id"),)

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    username = Column(String(30), nullable=False)  # snapshot at creation, never re-synced
    content = Column(Text, nullable=False, default="")
    image_url = Column(Text, nullable=True)
    version = Column(Integer, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    likes = relationship(
        "Like",
        back_populates="post",
        order_by="(Like.created_at, Like.id)",
        cascade="all, delete-orphan",
    )
    comments = relationship(
        "Comment",
        back_populates="post",
        order_by="Comment.position",
        collection_class=ordering_list("position"),
        cascade="all, delete-orphan",
    )

    __mapper_args__ = {"version_id_col": version}

    @property
    def likes_count(self) -> int:
        return len(self.likes)

    @property
    def comments_count(self) -> int:
        return len(self.comments)
