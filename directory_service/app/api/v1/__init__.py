from fastapi import APIRouter

from .auth import router as auth_router
from .bookmarks import router as bookmarks_router
from .comments import router as comments_router
from .posts import router as posts_router
from .users import router as users_router

api_router = APIRouter()
api_router.include_router(auth_router, prefix="/auth", tags=["auth"])
api_router.include_router(users_router, prefix="/user", tags=["users"])
api_router.include_router(posts_router, prefix="/post", tags=["posts"])
api_router.include_router(bookmarks_router, prefix="/bookmark", tags=["bookmarks"])
api_router.include_router(comments_router, prefix="/comment", tags=["comments"])
