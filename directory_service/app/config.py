from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path

import yaml


DEFAULT_CONFIG_FILE_NAME = "config.yaml"

JWT_SECRET_ENV = "JWT_SECRET"
JWT_EXPIRES_HOURS_ENV = "JWT_EXPIRES_HOURS"
COOKIE_SECURE_ENV = "COOKIE_SECURE"
EMAIL_USER_ENV = "EMAIL_USER"
EMAIL_PASS_ENV = "EMAIL_PASS"
SMTP_HOST_ENV = "SMTP_HOST"
SMTP_PORT_ENV = "SMTP_PORT"
CLIENT_URL_ENV = "CLIENT_URL"

ACCESS_TOKEN_COOKIE = "access_token"


@dataclass(slots=True)
class AuthConfig:
    jwt_secret: str
    jwt_algorithm: str = "HS256"
    # None 이면 만료 없는 토큰을 발급한다 (세션 쿠키 수명에 맡김).
    jwt_expires_hours: int | None = None
    cookie_name: str = ACCESS_TOKEN_COOKIE
    cookie_secure: bool = False
    bcrypt_rounds: int = 10
    reset_token_ttl_seconds: int = 3600


@dataclass(slots=True)
class MailConfig:
    user: str | None = None
    password: str | None = None
    smtp_host: str = "smtp.gmail.com"
    smtp_port: int = 465
    client_url: str = "http://localhost:5173"


@dataclass(slots=True)
class ImportConfig:
    data_path: str = "./data/zk-bugs.json"
    default_category: str = "vulnerabilities"


@dataclass(slots=True)
class AppConfig:
    """directory-service 전체 설정 루트.

    프로세스 시작 시 한 번 만들어지고(get_config), FastAPI 의존성으로 각 컴포넌트에 주입된다.
    """

    auth: AuthConfig
    mail: MailConfig = field(default_factory=MailConfig)
    importer: ImportConfig = field(default_factory=ImportConfig)


def _parse_int_env(name: str, default: int | None) -> int | None:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise RuntimeError(
            f"{name} must be an integer if set, got: {raw!r}"
        ) from exc


def _parse_bool_env(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def load_auth_config() -> AuthConfig:
    secret = os.getenv(JWT_SECRET_ENV)
    if not secret:
        raise RuntimeError(
            f"{JWT_SECRET_ENV} environment variable is required for directory-service",
        )

    return AuthConfig(
        jwt_secret=secret,
        jwt_expires_hours=_parse_int_env(JWT_EXPIRES_HOURS_ENV, None),
        cookie_secure=_parse_bool_env(COOKIE_SECURE_ENV, False),
    )


def load_mail_config() -> MailConfig:
    defaults = MailConfig()
    return MailConfig(
        user=os.getenv(EMAIL_USER_ENV) or None,
        password=os.getenv(EMAIL_PASS_ENV) or None,
        smtp_host=os.getenv(SMTP_HOST_ENV) or defaults.smtp_host,
        smtp_port=_parse_int_env(SMTP_PORT_ENV, None) or defaults.smtp_port,
        client_url=(os.getenv(CLIENT_URL_ENV) or defaults.client_url).rstrip("/"),
    )


def _find_config_path() -> Path | None:
    """현재 작업 디렉토리 기준으로 상위로 올라가며 config.yaml 을 찾는다.

    임포트 설정은 선택 사항이므로, 파일이 없으면 None 을 반환한다.
    """

    current = Path.cwd()
    for directory in (current, *current.parents):
        candidate = directory / DEFAULT_CONFIG_FILE_NAME
        if candidate.is_file():
            return candidate
    return None


def load_import_config(path: Path | None = None) -> ImportConfig:
    path = path or _find_config_path()
    if path is None:
        return ImportConfig()

    with path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    section = data.get("importer") or {}
    if not isinstance(section, dict):
        raise RuntimeError(f"invalid importer section in {path}: {section!r}")

    defaults = ImportConfig()
    data_path = str(section.get("data_path") or defaults.data_path).strip()
    default_category = (
        str(section.get("default_category") or defaults.default_category).strip()
        or defaults.default_category
    )
    return ImportConfig(data_path=data_path, default_category=default_category)


def load_config() -> AppConfig:
    """directory-service 설정을 로드하여 AppConfig 로 반환한다."""

    return AppConfig(
        auth=load_auth_config(),
        mail=load_mail_config(),
        importer=load_import_config(),
    )


@lru_cache(maxsize=1)
def get_config() -> AppConfig:
    """FastAPI DI용 설정 싱글톤."""

    return load_config()
