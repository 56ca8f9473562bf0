"""
API 의존성 주입
"""

from typing import Any, Dict, List, Optional

from fastapi import Depends, Header, Query, Request

from dropship_engine.errors import PermissionDeniedError
from dropship_engine.models.common import Page
from dropship_engine.monitoring import get_logger
from dropship_engine.services import DropshipServices

logger = get_logger(__name__)

ADMIN_ROLE = "admin"
MAX_LIMIT = 100


async def get_services(request: Request) -> DropshipServices:
    """서비스 구성 요소 반환"""
    return request.app.state.services


async def is_admin(x_caller_role: Optional[str] = Header(None, alias="X-Caller-Role")) -> bool:
    """호출자가 관리자인지 여부 (역할 헤더 값만 확인)"""
    return (x_caller_role or "").strip().lower() == ADMIN_ROLE


async def require_admin(admin: bool = Depends(is_admin)) -> bool:
    """관리자 권한 요구"""
    if not admin:
        raise PermissionDeniedError("관리자 권한이 필요합니다")
    return True


class Pagination:
    """페이지네이션 파라미터"""

    def __init__(
        self,
        page: int = Query(1, ge=1),
        limit: int = Query(20, ge=1),
    ):
        self.page = max(1, page)
        self.limit = min(max(1, limit), MAX_LIMIT)
        self.offset = (self.page - 1) * self.limit

    def paginate(self, total: int, items: List[Any]) -> Dict[str, Any]:
        """페이지네이션 응답 생성"""
        pages = (total + self.limit - 1) // self.limit

        return {
            "items": items,
            "pagination": {
                "page": self.page,
                "limit": self.limit,
                "total": total,
                "pages": pages,
                "hasNext": self.page < pages,
                "hasPrev": self.page > 1,
            },
        }

    def from_page(self, page: Page) -> Dict[str, Any]:
        return self.paginate(page.total, [item.to_api() for item in page.items])
