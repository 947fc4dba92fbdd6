from app.schemas.common import ApiResponse, ErrorDetail, ErrorResponse
from app.schemas.user import UserCreate, LoginRequest, UserIdentity, AuthResponse
from app.schemas.post import CommentCreate, CommentResponse, LikeResponse, PostResponse, PaginationMeta, PostPage
