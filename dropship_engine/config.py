"""
설정 관리 모듈
환경 변수를 읽어 Pydantic 모델로 변환하여 타입 안전성 보장
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

from dotenv import load_dotenv
from pydantic import Field, PrivateAttr, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# .env 파일 로드
load_dotenv(dotenv_path=".env", override=False)


class SupabaseConfig(BaseSettings):
    """Supabase 설정"""

    url: str
    service_role_key: str

    model_config = SettingsConfigDict(env_prefix="SUPABASE_")


class CredentialConfig(BaseSettings):
    """공급사 인증 정보 암호화 설정"""

    # base64 인코딩된 32바이트 키
    key: Optional[str] = None

    model_config = SettingsConfigDict(env_prefix="CREDENTIAL_")


class OrderAutomationConfig(BaseSettings):
    """공급사 주문 자동화 설정"""

    max_attempts: int = Field(default=5, ge=1)
    base_delay: float = Field(default=1.0, ge=0)  # 초
    max_delay: float = Field(default=30.0, ge=0)  # 초
    adapter_timeout: float = Field(default=5.0, gt=0)  # 초
    tracking_concurrency: int = Field(default=10, ge=1)
    tracking_interval_minutes: int = Field(default=30, ge=1)

    model_config = SettingsConfigDict(env_prefix="ORDER_")


class AliExpressConfig(BaseSettings):
    """AliExpress 주문 API 설정"""

    api_url: str = "https://api.aliexpress-dropship.com/v1"

    model_config = SettingsConfigDict(env_prefix="ALIEXPRESS_")


class DomemeConfig(BaseSettings):
    """도매매 주문 API 설정"""

    api_url: str = "https://domemeapi.com/api"
    company_code: str = ""

    model_config = SettingsConfigDict(env_prefix="DOMEME_")


class Settings(BaseSettings):
    """전체 애플리케이션 설정"""

    # 환경
    env: Literal["development", "staging", "production", "test"] = "development"
    debug: bool = False

    # 로깅
    log_level: str = "INFO"
    log_file: Optional[Path] = None

    # 저장소
    storage_backend: Literal["memory", "json", "supabase"] = "memory"
    local_data_path: Path = Path("./data")

    # 스케줄러
    scheduler_enabled: bool = False

    # API 서버
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    # 하위 설정 (lazy loading)
    _supabase: Optional[SupabaseConfig] = PrivateAttr(default=None)
    _credentials: Optional[CredentialConfig] = PrivateAttr(default=None)
    _orders: Optional[OrderAutomationConfig] = PrivateAttr(default=None)
    _aliexpress: Optional[AliExpressConfig] = PrivateAttr(default=None)
    _domeme: Optional[DomemeConfig] = PrivateAttr(default=None)

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore"
    )

    @field_validator("log_file", mode="before")
    @classmethod
    def create_log_path(cls, v):
        if v:
            path = Path(v)
            path.parent.mkdir(parents=True, exist_ok=True)
            return path
        return v

    @property
    def supabase(self) -> Optional[SupabaseConfig]:
        """Supabase 설정 (미설정시 None)"""
        if self._supabase is None:
            try:
                self._supabase = SupabaseConfig()
            except ValidationError:
                return None
        return self._supabase

    @property
    def credentials(self) -> CredentialConfig:
        """인증 정보 암호화 설정"""
        if self._credentials is None:
            self._credentials = CredentialConfig()
        return self._credentials

    @property
    def orders(self) -> OrderAutomationConfig:
        """주문 자동화 설정"""
        if self._orders is None:
            self._orders = OrderAutomationConfig()
        return self._orders

    @property
    def aliexpress(self) -> AliExpressConfig:
        """AliExpress 설정"""
        if self._aliexpress is None:
            self._aliexpress = AliExpressConfig()
        return self._aliexpress

    @property
    def domeme(self) -> DomemeConfig:
        """도매매 설정"""
        if self._domeme is None:
            self._domeme = DomemeConfig()
        return self._domeme

    def is_production(self) -> bool:
        """프로덕션 환경 여부"""
        return self.env == "production"

    def is_development(self) -> bool:
        """개발 환경 여부"""
        return self.env == "development"


@lru_cache()
def get_settings() -> Settings:
    """설정 싱글톤 인스턴스 반환"""
    return Settings()


# 전역 설정 인스턴스
settings = get_settings()
