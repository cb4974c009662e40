from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends

from ...exceptions import ValidationError
from ...security import CurrentUser, get_current_user, get_optional_user
from ...services.bookmarks_service import BookmarksService, get_bookmarks_service
from ..schemas.bookmarks import (
    BookmarkAddedResponse,
    BookmarkAddRequest,
    BookmarkResponse,
    BookmarkStatusResponse,
)
from ..schemas.common import MessageResponse
from ..schemas.posts import PostResponse


router = APIRouter()


@router.post(
    "/add",
    response_model=BookmarkAddedResponse,
    status_code=201,
    summary="북마크 추가",
    description="이미 북마크한 포스트면 409 를 반환한다.",
)
def add_bookmark(
    body: BookmarkAddRequest,
    caller: CurrentUser = Depends(get_current_user),
    service: BookmarksService = Depends(get_bookmarks_service),
) -> BookmarkAddedResponse:
    if not body.post_id:
        raise ValidationError("Post ID is required")

    bookmark = service.add_bookmark(caller.id, body.post_id)
    return BookmarkAddedResponse(
        message="Post bookmarked successfully",
        bookmark=BookmarkResponse.from_domain(bookmark),
    )


@router.delete(
    "/remove/{post_id}",
    response_model=MessageResponse,
    summary="북마크 삭제",
)
def remove_bookmark(
    post_id: str,
    caller: CurrentUser = Depends(get_current_user),
    service: BookmarksService = Depends(get_bookmarks_service),
) -> MessageResponse:
    service.remove_bookmark(caller.id, post_id)
    return MessageResponse(message="Bookmark removed successfully")


@router.get(
    "/posts",
    response_model=list[PostResponse],
    summary="북마크한 포스트 목록",
    description="북마크한 순서대로 포스트 전체 데이터를 반환한다.",
)
def get_bookmarked_posts(
    caller: CurrentUser = Depends(get_current_user),
    service: BookmarksService = Depends(get_bookmarks_service),
) -> list[PostResponse]:
    posts = service.list_bookmarked_posts(caller.id)
    return [PostResponse.from_domain(p) for p in posts]


@router.get(
    "/status/{post_id}",
    response_model=BookmarkStatusResponse,
    summary="북마크 여부",
    description="로그인하지 않았거나 세션이 유효하지 않으면 false 를 반환한다.",
)
def check_bookmark_status(
    post_id: str,
    caller: Optional[CurrentUser] = Depends(get_optional_user),
    service: BookmarksService = Depends(get_bookmarks_service),
) -> BookmarkStatusResponse:
    user_id = caller.id if caller else None
    return BookmarkStatusResponse(is_bookmarked=service.is_bookmarked(user_id, post_id))
