"""
하드코딩 상수 - 변경될 일이 거의 없는 고정값

중요: 경로는 반드시 pathlib.Path 사용 (Windows/Linux 크로스 플랫폼)
"""

from pathlib import Path


# 프로젝트 루트 (이 파일 기준 2단계 상위: core/constants.py → voucherbook/)
PROJECT_ROOT: Path = Path(__file__).resolve().parent.parent

APP_VERSION: str = "1.0.0"


class Defaults:
    """기본값 상수"""

    WEB_HOST: str = "127.0.0.1"
    WEB_PORT: int = 8000

    LOG_LEVEL: str = "INFO"

    # 회수 목록
    RECOVERY_MIN_DAYS: int = 30
    RECOVERY_MIN_GROUP_SIZE: int = 3  # 그룹 헤더 표시 최소 계정 수

    # 신규 회사 회계연도 (4월 1일 ~ 다음 해 3월 31일)
    FINANCIAL_YEAR_START_MONTH: int = 4


class Paths:
    """프로젝트 경로 상수 (pathlib 사용 - OS 독립적)"""

    # 디렉토리
    CONFIG_DIR: Path = PROJECT_ROOT / "config"
    DATA_DIR: Path = PROJECT_ROOT / "data"
    LOGS_DIR: Path = PROJECT_ROOT / "logs"

    # 설정 파일
    SETTINGS_FILE: Path = CONFIG_DIR / "settings.yaml"

    # DB 파일
    DB_FILE: Path = DATA_DIR / "voucherbook.db"


class EnvVars:
    """환경 변수 이름"""

    SETTINGS_PATH: str = "VOUCHERBOOK_SETTINGS"
