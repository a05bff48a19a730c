"""애플리케이션 설정 관리"""

from pathlib import Path
from typing import Literal

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# .env 파일 로드
load_dotenv()

# 프로젝트 루트 디렉토리
ROOT_DIR = Path(__file__).parent.parent

ProviderName = Literal["openai", "anthropic", "dummy"]


class Settings(BaseSettings):
    """애플리케이션 설정"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # LLM 제공자 (기본 → 폴백 순서, 부하 분산 아님)
    primary_provider: ProviderName = Field(
        default="openai", description="기본 LLM 제공자 (openai | anthropic | dummy)"
    )
    fallback_provider: ProviderName = Field(
        default="anthropic", description="폴백 LLM 제공자 (openai | anthropic | dummy)"
    )

    # API 키 (쉼표로 구분하면 순환 사용)
    openai_api_key: str | None = Field(default=None, description="OpenAI API 키 (쉼표 구분 가능)")
    anthropic_api_key: str | None = Field(
        default=None, description="Anthropic API 키 (쉼표 구분 가능)"
    )

    # 모델 설정
    openai_model: str = Field(default="gpt-4o", description="OpenAI 기본 모델명")
    openai_model_intent: str = Field(default="gpt-4o-mini", description="의도 분류용 OpenAI 모델")
    openai_model_image: str = Field(default="gpt-image-1", description="이미지 생성용 OpenAI 모델")
    anthropic_model: str = Field(
        default="claude-3-5-sonnet-20241022", description="Anthropic 모델명"
    )

    # 호출 제한
    llm_timeout_seconds: float = Field(default=30.0, description="LLM 호출 타임아웃 (초)")
    intent_max_tokens: int = Field(default=400, description="의도 분류 응답 최대 토큰")
    agent_max_tokens: int = Field(default=2048, description="에이전트 응답 최대 토큰")

    # 오케스트레이션 설정
    history_window: int = Field(default=20, description="에이전트에 전달할 최근 메시지 수")
    max_images_per_request: int = Field(default=5, description="요청당 최대 이미지 수")
    performance_weight: float = Field(default=1.0, description="에이전트 성공률 가중치")

    # 앱 설정
    app_debug: bool = Field(default=False, description="디버그 모드")
    log_level: str = Field(default="INFO", description="로그 레벨")
    logging_config_path: str = Field(
        default="config/logging.yml", description="로깅 YAML 경로 (프로젝트 루트 기준)"
    )

    def api_keys_for(self, provider: str) -> list[str]:
        """제공자별 API 키 목록 반환 (쉼표 구분 문자열 분해)"""
        raw = {
            "openai": self.openai_api_key,
            "anthropic": self.anthropic_api_key,
        }.get(provider)
        if not raw:
            return []
        return [key.strip() for key in raw.split(",") if key.strip()]


# 전역 설정 인스턴스
settings = Settings()


def validate_settings() -> dict[str, str]:
    """설정 유효성 검사 및 경고 메시지 반환"""
    warnings = {}

    if settings.primary_provider == settings.fallback_provider:
        warnings["fallback"] = (
            "기본 제공자와 폴백 제공자가 같습니다. 폴백이 독립적으로 동작하지 않습니다."
        )

    for role, provider in (
        ("primary", settings.primary_provider),
        ("fallback", settings.fallback_provider),
    ):
        if provider == "dummy":
            continue
        if not settings.api_keys_for(provider):
            env_name = f"{provider.upper()}_API_KEY"
            warnings[role] = f"{provider} 사용을 위해서는 {env_name}가 필요합니다."

    return warnings
