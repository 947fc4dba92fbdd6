from app.models.user import User
from app.models.post import Post
from app.models.comment import Comment
from app.models.engagement import Like

__all__ = ["User", "Post", "Comment", "Like"]
