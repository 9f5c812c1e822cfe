"""
설정 로더

settings.yaml 로드 및 애플리케이션 설정 생성
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from core.constants import Defaults, EnvVars, PROJECT_ROOT, Paths


@dataclass(frozen=True)
class RecoverySettings:
    """회수 목록 기본값"""

    min_days: int = Defaults.RECOVERY_MIN_DAYS
    min_group_size: int = Defaults.RECOVERY_MIN_GROUP_SIZE


@dataclass(frozen=True)
class WebSettings:
    """Web 서버 설정"""

    host: str = Defaults.WEB_HOST
    port: int = Defaults.WEB_PORT


@dataclass(frozen=True)
class AppSettings:
    """애플리케이션 설정 (settings.yaml에서 로드)

    불변 데이터 구조로 설정 변경 방지
    """

    db_path: Path
    log_level: str = Defaults.LOG_LEVEL
    recovery: RecoverySettings = RecoverySettings()
    web: WebSettings = WebSettings()


class SettingsLoadError(Exception):
    """Settings 로드 실패 예외"""

    pass


def _section(data: dict[str, Any], name: str) -> dict[str, Any]:
    """하위 섹션 조회 (없으면 빈 dict)"""
    section = data.get(name) or {}
    if not isinstance(section, dict):
        raise SettingsLoadError(f"settings.yaml의 '{name}' 섹션 형식이 잘못되었습니다")
    return section


def _positive_int(section: dict[str, Any], key: str, default: int, where: str) -> int:
    value = section.get(key, default)
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise SettingsLoadError(
            f"settings.yaml의 {where}.{key}는 0 이상의 정수여야 합니다: {value!r}"
        )
    return value


def resolve_settings_path(path: Path | None = None) -> Path:
    """설정 파일 경로 결정

    우선순위: 인자 > VOUCHERBOOK_SETTINGS 환경 변수 > config/settings.yaml
    """
    if path is not None:
        return path
    env_path = os.environ.get(EnvVars.SETTINGS_PATH)
    if env_path:
        return Path(env_path)
    return Paths.SETTINGS_FILE


def load_settings(path: Path | None = None) -> AppSettings:
    """settings.yaml 파일 로드

    파일이 없으면 기본값 사용.

    Args:
        path: settings.yaml 경로 (None이면 기본 경로 사용)

    Returns:
        AppSettings 인스턴스

    Raises:
        SettingsLoadError: 형식이 잘못된 경우
    """
    path = resolve_settings_path(path)

    if not path.exists():
        return AppSettings(db_path=Paths.DB_FILE)

    try:
        content = path.read_text(encoding="utf-8")
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise SettingsLoadError(f"settings.yaml 파싱 실패: {e}") from e

    if data is None:
        return AppSettings(db_path=Paths.DB_FILE)

    if not isinstance(data, dict):
        raise SettingsLoadError("settings.yaml 최상위는 매핑이어야 합니다")

    # DB 경로 (상대 경로는 프로젝트 루트 기준)
    db_path = Path(data.get("db_path") or Paths.DB_FILE)
    if not db_path.is_absolute():
        db_path = PROJECT_ROOT / db_path

    log_level = str(data.get("log_level", Defaults.LOG_LEVEL)).upper()
    if log_level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
        raise SettingsLoadError(f"유효하지 않은 log_level입니다: '{log_level}'")

    recovery = _section(data, "recovery")
    web = _section(data, "web")

    return AppSettings(
        db_path=db_path,
        log_level=log_level,
        recovery=RecoverySettings(
            min_days=_positive_int(
                recovery, "min_days", Defaults.RECOVERY_MIN_DAYS, "recovery"
            ),
            min_group_size=_positive_int(
                recovery, "min_group_size", Defaults.RECOVERY_MIN_GROUP_SIZE, "recovery"
            ),
        ),
        web=WebSettings(
            host=str(web.get("host", Defaults.WEB_HOST)),
            port=_positive_int(web, "port", Defaults.WEB_PORT, "web"),
        ),
    )


class Settings:
    """애플리케이션 설정 (싱글턴 패턴)

    settings.yaml을 로드하고 관련 설정을 제공
    """

    _instance: "Settings | None" = None
    _settings: AppSettings | None = None

    def __new__(cls, settings_path: Path | None = None) -> "Settings":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self, settings_path: Path | None = None) -> None:
        if self._settings is None:
            self._settings = load_settings(settings_path)

    @property
    def db_path(self) -> Path:
        """DB 경로"""
        assert self._settings is not None
        return self._settings.db_path

    @property
    def log_level(self) -> str:
        """로그 레벨"""
        assert self._settings is not None
        return self._settings.log_level

    @property
    def recovery(self) -> RecoverySettings:
        """회수 목록 기본값"""
        assert self._settings is not None
        return self._settings.recovery

    @property
    def web(self) -> WebSettings:
        """Web 서버 설정"""
        assert self._settings is not None
        return self._settings.web

    @classmethod
    def reset(cls) -> None:
        """싱글턴 인스턴스 초기화 (테스트용)"""
        cls._instance = None
        cls._settings = None


def get_settings(settings_path: Path | None = None) -> Settings:
    """Settings 인스턴스 반환

    Args:
        settings_path: settings.yaml 경로 (None이면 기본 경로 사용)

    Returns:
        Settings 싱글턴 인스턴스
    """
    return Settings(settings_path)
