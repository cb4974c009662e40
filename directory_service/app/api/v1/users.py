from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, Response

from ...config import AppConfig, get_config
from ...security import CurrentUser, clear_session_cookie, get_current_user
from ...services.users_service import UsersService, get_users_service
from ..params import parse_int_param, parse_order_param
from ..schemas.users import ListUsersResponse, UserResponse, UserUpdateRequest


router = APIRouter()


@router.post("/signout", response_model=str, summary="로그아웃")
def signout(response: Response, config: AppConfig = Depends(get_config)) -> str:
    clear_session_cookie(response, config.auth)
    return "User has been signed out"


@router.get(
    "/getusers",
    response_model=ListUsersResponse,
    summary="유저 목록 (관리자)",
)
def get_users(
    start_index: Optional[str] = Query(default=None, alias="startIndex"),
    limit: Optional[str] = Query(default=None),
    order: Optional[str] = Query(default=None, alias="sort"),
    caller: CurrentUser = Depends(get_current_user),
    service: UsersService = Depends(get_users_service),
) -> ListUsersResponse:
    page = service.list_users(
        caller,
        parse_int_param(start_index, 0),
        parse_int_param(limit, 9),
        parse_order_param(order),
    )
    return ListUsersResponse.from_domain(page)


@router.put(
    "/update/{user_id}",
    response_model=UserResponse,
    summary="프로필 수정 (본인)",
)
def update_user(
    user_id: str,
    body: UserUpdateRequest,
    caller: CurrentUser = Depends(get_current_user),
    service: UsersService = Depends(get_users_service),
) -> UserResponse:
    profile = service.update_user(
        user_id,
        caller,
        username=body.username,
        email=body.email,
        password=body.password,
        profile_picture=body.profile_picture,
    )
    return UserResponse.from_domain(profile)


@router.delete(
    "/delete/{user_id}",
    response_model=str,
    summary="유저 삭제 (본인 또는 관리자)",
    description="유저의 북마크와 댓글도 함께 삭제된다. 작성한 포스트는 유지된다.",
)
def delete_user(
    user_id: str,
    response: Response,
    caller: CurrentUser = Depends(get_current_user),
    service: UsersService = Depends(get_users_service),
    config: AppConfig = Depends(get_config),
) -> str:
    service.delete_user(user_id, caller)
    if caller.id == user_id:
        clear_session_cookie(response, config.auth)
    return "User has been deleted"


@router.get("/{user_id}", response_model=UserResponse, summary="유저 공개 프로필")
def get_user(
    user_id: str,
    service: UsersService = Depends(get_users_service),
) -> UserResponse:
    return UserResponse.from_domain(service.get_user(user_id))
