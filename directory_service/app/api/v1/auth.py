from __future__ import annotations

from fastapi import APIRouter, Depends, Response

from ...config import AppConfig, get_config
from ...security import set_session_cookie
from ...services.users_service import SignedInUser, UsersService, get_users_service
from ..schemas.common import MessageResponse
from ..schemas.users import (
    ForgotPasswordRequest,
    GoogleSigninRequest,
    ResetPasswordRequest,
    SigninRequest,
    SignupRequest,
    UserResponse,
    VerifyResetTokenResponse,
)


router = APIRouter()


def _signed_in(
    result: SignedInUser, response: Response, config: AppConfig
) -> UserResponse:
    set_session_cookie(response, result.token, config.auth)
    return UserResponse.from_domain(result.profile)


@router.post("/signup", response_model=str, summary="회원가입")
def signup(
    body: SignupRequest,
    service: UsersService = Depends(get_users_service),
) -> str:
    service.signup(body.username, body.email, body.password)
    return "Signup successful"


@router.post(
    "/signin",
    response_model=UserResponse,
    summary="로그인",
    description="성공하면 HTTP-only access_token 쿠키를 설정한다.",
)
def signin(
    body: SigninRequest,
    response: Response,
    service: UsersService = Depends(get_users_service),
    config: AppConfig = Depends(get_config),
) -> UserResponse:
    return _signed_in(service.signin(body.email, body.password), response, config)


@router.post("/google", response_model=UserResponse, summary="Google 로그인")
def google(
    body: GoogleSigninRequest,
    response: Response,
    service: UsersService = Depends(get_users_service),
    config: AppConfig = Depends(get_config),
) -> UserResponse:
    result = service.google(body.email, body.name, body.google_photo_url)
    return _signed_in(result, response, config)


@router.post(
    "/forgot-password",
    response_model=MessageResponse,
    summary="비밀번호 재설정 메일 발송",
)
def forgot_password(
    body: ForgotPasswordRequest,
    service: UsersService = Depends(get_users_service),
) -> MessageResponse:
    service.forgot_password(body.email)
    return MessageResponse(message="Password reset email sent successfully")


@router.post(
    "/reset-password/{token}",
    response_model=MessageResponse,
    summary="비밀번호 재설정",
)
def reset_password(
    token: str,
    body: ResetPasswordRequest,
    service: UsersService = Depends(get_users_service),
) -> MessageResponse:
    service.reset_password(token, body.password)
    return MessageResponse(message="Password reset successful")


@router.get(
    "/verify-reset-token/{token}",
    response_model=VerifyResetTokenResponse,
    summary="재설정 토큰 검증",
)
def verify_reset_token(
    token: str,
    service: UsersService = Depends(get_users_service),
) -> VerifyResetTokenResponse:
    return VerifyResetTokenResponse(email=service.verify_reset_token(token))
