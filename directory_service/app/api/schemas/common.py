"""공통 스키마 정의."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class ApiModel(BaseModel):
    """클라이언트 필드명(camelCase alias)과 파이썬 필드명 모두로 채울 수 있는 베이스 모델."""

    model_config = ConfigDict(populate_by_name=True)


class MessageResponse(BaseModel):
    success: bool = True
    message: str


class ErrorResponse(ApiModel):
    success: bool = False
    status_code: int = Field(alias="statusCode")
    message: str
