from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query

from ...security import CurrentUser, get_current_user
from ...services.comments_service import CommentsService, get_comments_service
from ..schemas.comments import (
    CommentCreateRequest,
    CommentEditRequest,
    CommentResponse,
    ListCommentsResponse,
)
from ..params import parse_int_param, parse_order_param


router = APIRouter()


@router.post("/create", response_model=CommentResponse, summary="댓글 작성")
def create_comment(
    body: CommentCreateRequest,
    caller: CurrentUser = Depends(get_current_user),
    service: CommentsService = Depends(get_comments_service),
) -> CommentResponse:
    comment = service.create_comment(
        body.content, body.post_id, caller, user_id=body.user_id
    )
    return CommentResponse.from_domain(comment)


@router.get(
    "/getPostComments/{post_id}",
    response_model=list[CommentResponse],
    summary="포스트 댓글 목록 (최신순)",
)
def get_post_comments(
    post_id: str,
    service: CommentsService = Depends(get_comments_service),
) -> list[CommentResponse]:
    return [CommentResponse.from_domain(c) for c in service.list_comments_for_post(post_id)]


@router.put(
    "/likeComment/{comment_id}",
    response_model=CommentResponse,
    summary="댓글 좋아요 토글",
)
def like_comment(
    comment_id: str,
    caller: CurrentUser = Depends(get_current_user),
    service: CommentsService = Depends(get_comments_service),
) -> CommentResponse:
    return CommentResponse.from_domain(service.toggle_like(comment_id, caller))


@router.put(
    "/editComment/{comment_id}",
    response_model=CommentResponse,
    summary="댓글 수정 (작성자 또는 관리자)",
)
def edit_comment(
    comment_id: str,
    body: CommentEditRequest,
    caller: CurrentUser = Depends(get_current_user),
    service: CommentsService = Depends(get_comments_service),
) -> CommentResponse:
    comment = service.edit_comment(comment_id, body.content, caller)
    return CommentResponse.from_domain(comment)


@router.delete(
    "/deleteComment/{comment_id}",
    response_model=str,
    summary="댓글 삭제 (작성자 또는 관리자)",
)
def delete_comment(
    comment_id: str,
    caller: CurrentUser = Depends(get_current_user),
    service: CommentsService = Depends(get_comments_service),
) -> str:
    service.delete_comment(comment_id, caller)
    return "Comment has been deleted"


@router.get(
    "/getcomments",
    response_model=ListCommentsResponse,
    summary="전체 댓글 조회 (관리자)",
)
def get_comments(
    start_index: Optional[str] = Query(default=None, alias="startIndex"),
    limit: Optional[str] = Query(default=None),
    order: Optional[str] = Query(default=None, alias="sort"),
    caller: CurrentUser = Depends(get_current_user),
    service: CommentsService = Depends(get_comments_service),
) -> ListCommentsResponse:
    page = service.list_all_comments(
        caller,
        parse_int_param(start_index, 0),
        parse_int_param(limit, 9),
        parse_order_param(order),
    )
    return ListCommentsResponse.from_domain(page)
