from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query

from zkbug_common.models.post import ListPostsFilter

from ...security import CurrentUser, get_current_user
from ...services.bookmarks_service import BookmarksService, get_bookmarks_service
from ...services.import_service import ImportService, get_import_service
from ...services.posts_service import PostsService, get_posts_service
from ..params import parse_int_param, parse_order_param
from ..schemas.common import MessageResponse
from ..schemas.posts import (
    BulkDeleteRequest,
    BulkDeleteResponse,
    ImportErrorItem,
    ImportRequest,
    ImportResponse,
    LanguagesResponse,
    ListPostsResponse,
    PostBySlugResponse,
    PostResponse,
    PostStatsResponse,
    PostWriteRequest,
    ProtocolPostsResponse,
    SearchParamsResponse,
)


router = APIRouter()


def _split_param(value: Optional[str]) -> list[str]:
    if not value:
        return []
    return [part for part in value.split(",") if part]


@router.get(
    "/getposts",
    response_model=ListPostsResponse,
    summary="포스트 목록 조회",
    description=(
        "필터/검색어 기준으로 포스트를 updated_at 순으로 정렬해 페이지네이션하여 반환한다. "
        "totalPosts/lastMonthPosts 는 전체 컬렉션 기준이다."
    ),
)
def get_posts(
    user_id: Optional[str] = Query(default=None, alias="userId"),
    category: Optional[str] = Query(default=None),
    slug: Optional[str] = Query(default=None),
    post_id: Optional[str] = Query(default=None, alias="postId"),
    search_term: Optional[str] = Query(default=None, alias="searchTerm"),
    start_index: Optional[str] = Query(default=None, alias="startIndex"),
    limit: Optional[str] = Query(default=None),
    order: Optional[str] = Query(default=None, description="asc 이면 오름차순"),
    audit_firm: Optional[str] = Query(default=None, alias="auditFirm"),
    report_source: Optional[str] = Query(default=None, alias="reportSource"),
    protocol: Optional[str] = Query(default=None),
    protocol_type: Optional[str] = Query(default=None, alias="protocolType"),
    severity: Optional[str] = Query(default=None),
    difficulty: Optional[str] = Query(default=None),
    tags: Optional[str] = Query(default=None, description="쉼표로 구분"),
    frameworks: Optional[str] = Query(default=None, description="쉼표로 구분"),
    service: PostsService = Depends(get_posts_service),
) -> ListPostsResponse:
    flt = ListPostsFilter(
        start_index=parse_int_param(start_index, 0),
        limit=parse_int_param(limit, 9),
        order=parse_order_param(order),
        user_id=user_id,
        category=category,
        slug=slug,
        post_id=post_id,
        search_term=search_term,
        audit_firm=audit_firm,
        report_source=report_source,
        protocol=protocol,
        protocol_type=protocol_type,
        severity=severity,
        difficulty=difficulty,
        tags=_split_param(tags),
        frameworks=_split_param(frameworks),
    )
    page = service.list_posts(flt)
    return ListPostsResponse(
        posts=[PostResponse.from_domain(p) for p in page.posts],
        total_posts=page.total_posts,
        last_month_posts=page.last_month_posts,
    )


@router.post(
    "/create",
    response_model=PostResponse,
    status_code=201,
    summary="포스트 생성 (관리자)",
)
def create_post(
    body: PostWriteRequest,
    caller: CurrentUser = Depends(get_current_user),
    service: PostsService = Depends(get_posts_service),
) -> PostResponse:
    post = service.create_post(caller, body.to_input())
    return PostResponse.from_domain(post)


@router.put(
    "/updatepost/{post_id}/{user_id}",
    response_model=PostResponse,
    summary="포스트 수정 (관리자 본인)",
)
def update_post(
    post_id: str,
    user_id: str,
    body: PostWriteRequest,
    caller: CurrentUser = Depends(get_current_user),
    service: PostsService = Depends(get_posts_service),
) -> PostResponse:
    post = service.update_post(post_id, user_id, caller, body.to_input())
    return PostResponse.from_domain(post)


@router.delete(
    "/deletepost/{post_id}/{user_id}",
    response_model=str,
    summary="포스트 삭제 (관리자 본인)",
)
def delete_post(
    post_id: str,
    user_id: str,
    caller: CurrentUser = Depends(get_current_user),
    service: PostsService = Depends(get_posts_service),
) -> str:
    service.delete_post(post_id, user_id, caller)
    return "The post has been deleted"


@router.delete(
    "/bulk",
    response_model=BulkDeleteResponse,
    summary="포스트 일괄 삭제 (관리자)",
)
def bulk_delete_posts(
    body: BulkDeleteRequest,
    caller: CurrentUser = Depends(get_current_user),
    service: PostsService = Depends(get_posts_service),
) -> BulkDeleteResponse:
    deleted = service.bulk_delete_posts(caller, body.post_ids)
    return BulkDeleteResponse(deleted=deleted)


@router.post(
    "/import",
    response_model=ImportResponse,
    summary="JSON 레코드 임포트 (관리자)",
)
def import_posts(
    body: ImportRequest,
    caller: CurrentUser = Depends(get_current_user),
    service: ImportService = Depends(get_import_service),
) -> ImportResponse:
    result = service.import_for_admin(caller, body.data, body.user_id)
    return ImportResponse(
        imported=result.imported,
        partial=result.partial,
        errors=[ImportErrorItem(title=e.title, error=e.error) for e in result.errors],
        data=[PostResponse.from_domain(p) for p in result.data],
    )


@router.get("/stats", response_model=PostStatsResponse, summary="포스트 통계")
def get_post_stats(
    service: PostsService = Depends(get_posts_service),
) -> PostStatsResponse:
    return PostStatsResponse.from_domain(service.get_post_stats())


@router.get(
    "/languages",
    response_model=LanguagesResponse,
    summary="코드 언어 목록",
)
def get_languages(
    service: PostsService = Depends(get_posts_service),
) -> LanguagesResponse:
    return LanguagesResponse(languages=service.list_code_languages())


@router.get(
    "/search-params",
    response_model=SearchParamsResponse,
    summary="검색 필터 허용 값",
)
def get_search_params() -> SearchParamsResponse:
    params = PostsService.search_params()
    return SearchParamsResponse(
        protocol_types=params.protocol_types,
        severity_levels=params.severities,
        difficulty_levels=params.difficulties,
    )


@router.get(
    "/protocol/{protocol_name}",
    response_model=ProtocolPostsResponse,
    summary="프로토콜별 포스트 조회",
)
def get_posts_by_protocol(
    protocol_name: str,
    page: Optional[str] = Query(default=None),
    limit: Optional[str] = Query(default=None),
    service: PostsService = Depends(get_posts_service),
) -> ProtocolPostsResponse:
    result = service.list_posts_by_protocol(
        protocol_name, parse_int_param(page, 1), parse_int_param(limit, 10)
    )
    return ProtocolPostsResponse(
        posts=[PostResponse.from_domain(p) for p in result.posts],
        current_page=result.current_page,
        total_pages=result.total_pages,
        total=result.total,
    )


@router.get(
    "/post/{slug}",
    response_model=PostBySlugResponse,
    summary="슬러그로 포스트 조회",
)
def get_post_by_slug(
    slug: str,
    service: PostsService = Depends(get_posts_service),
) -> PostBySlugResponse:
    post, related = service.get_post_by_slug(slug)
    return PostBySlugResponse(
        post=PostResponse.from_domain(post),
        related_posts=[PostResponse.from_domain(p) for p in related],
    )


# --- bookmarks (bookmarks 컬렉션 위의 구 경로) -----------------------------------------


@router.get(
    "/bookmarked",
    response_model=list[PostResponse],
    summary="북마크한 포스트 목록",
)
def get_bookmarked_posts(
    caller: CurrentUser = Depends(get_current_user),
    bookmarks: BookmarksService = Depends(get_bookmarks_service),
) -> list[PostResponse]:
    posts = bookmarks.list_bookmarked_posts(caller.id)
    return [PostResponse.from_domain(p) for p in posts]


@router.post(
    "/{post_id}/bookmark",
    response_model=MessageResponse,
    summary="포스트 북마크",
)
def bookmark_post(
    post_id: str,
    caller: CurrentUser = Depends(get_current_user),
    bookmarks: BookmarksService = Depends(get_bookmarks_service),
) -> MessageResponse:
    bookmarks.add_bookmark(caller.id, post_id)
    return MessageResponse(message="Post bookmarked successfully")


@router.post(
    "/{post_id}/unbookmark",
    response_model=MessageResponse,
    summary="포스트 북마크 해제",
)
def unbookmark_post(
    post_id: str,
    caller: CurrentUser = Depends(get_current_user),
    bookmarks: BookmarksService = Depends(get_bookmarks_service),
) -> MessageResponse:
    bookmarks.remove_bookmark(caller.id, post_id)
    return MessageResponse(message="Bookmark removed successfully")
