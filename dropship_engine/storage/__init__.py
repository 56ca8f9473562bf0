"""
저장소 모듈
설정에 따라 메모리, JSON 파일, Supabase 저장소 생성
"""

from typing import Optional

from dropship_engine.config import Settings, get_settings
from dropship_engine.storage.base import BaseStorage
from dropship_engine.storage.json_storage import JSONStorage
from dropship_engine.storage.memory_storage import MemoryStorage


def create_storage(settings: Optional[Settings] = None) -> BaseStorage:
    """설정된 백엔드의 저장소 인스턴스 생성"""
    settings = settings or get_settings()

    if settings.storage_backend == "json":
        return JSONStorage(base_path=str(settings.local_data_path))

    if settings.storage_backend == "supabase":
        # supabase 클라이언트는 필요할 때만 로드
        from dropship_engine.storage.supabase_storage import SupabaseStorage

        config = settings.supabase
        if config is None:
            raise ValueError("SUPABASE_URL, SUPABASE_SERVICE_ROLE_KEY 설정이 필요합니다")
        return SupabaseStorage(url=config.url, service_key=config.service_role_key)

    return MemoryStorage()


__all__ = ["BaseStorage", "MemoryStorage", "JSONStorage", "create_storage"]
