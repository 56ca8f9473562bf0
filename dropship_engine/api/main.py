"""
API 서버 메인 애플리케이션
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from dropship_engine import __version__
from dropship_engine.config import get_settings
from dropship_engine.errors import DropshipError
from dropship_engine.monitoring import get_logger, global_metrics, setup_logging
from dropship_engine.orders.scheduler import TrackingScheduler
from dropship_engine.services import DropshipServices, build_services

from .middleware import TimingMiddleware
from .routers import dropship, market_data, recommendations, relations, suppliers

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """애플리케이션 생명주기 관리"""
    services: Optional[DropshipServices] = getattr(app.state, "services", None)
    if services is None:
        services = build_services()
        app.state.services = services
    settings = services.settings

    # 로깅 설정
    setup_logging(
        log_level=settings.log_level,
        log_file=settings.log_file,
        json_logs=settings.is_production(),
    )
    logger.info("API 서버 시작")

    # 추적 스케줄러 시작 (설정된 경우)
    scheduler = None
    if settings.scheduler_enabled:
        scheduler = TrackingScheduler(services.orders, services.storage, settings.orders)
        scheduler.start()

    yield

    logger.info("API 서버 종료")
    if scheduler:
        scheduler.stop()
    await services.close()


async def dropship_exception_handler(request: Request, exc: DropshipError):
    """도메인 예외 처리"""
    global_metrics.increment("api.errors")

    return JSONResponse(
        status_code=exc.status_code,
        content=jsonable_encoder(
            {
                "error": {
                    "code": exc.status_code,
                    "type": type(exc).__name__,
                    "message": exc.message,
                    "details": exc.details,
                    "path": str(request.url.path),
                }
            }
        ),
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """HTTP 예외 처리"""
    global_metrics.increment("api.errors")

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": {"code": exc.status_code, "message": exc.detail, "path": str(request.url.path)}
        },
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """요청 검증 오류 처리"""
    global_metrics.increment("api.validation_errors")

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=jsonable_encoder(
            {"error": {"code": 422, "message": "Validation Error", "details": exc.errors()}}
        ),
    )


async def general_exception_handler(request: Request, exc: Exception):
    """일반 예외 처리"""
    global_metrics.increment("api.errors")
    logger.exception(f"처리되지 않은 예외: {type(exc).__name__}")

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": {"code": 500, "message": "Internal Server Error"}},
    )


def create_app(services: Optional[DropshipServices] = None) -> FastAPI:
    """
    FastAPI 앱 생성

    Args:
        services: 미리 구성된 서비스 (없으면 시작 시 설정으로 생성)
    """
    app = FastAPI(
        title="드롭쉬핑 연동 엔진 API",
        description="공급사 등록, 가격 추천, 상품 추천 검토, 공급사 주문 자동화",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    if services is not None:
        app.state.services = services

    # 미들웨어 설정
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=1000)
    app.add_middleware(TimingMiddleware)

    # 라우터 등록
    app.include_router(suppliers.router, prefix="/suppliers", tags=["suppliers"])
    app.include_router(
        recommendations.router, prefix="/recommendations", tags=["recommendations"]
    )
    app.include_router(relations.router, prefix="/relations", tags=["relations"])
    app.include_router(dropship.router, prefix="/dropship", tags=["dropship"])
    app.include_router(market_data.router, prefix="/market-data", tags=["market-data"])

    # 예외 처리
    app.add_exception_handler(DropshipError, dropship_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    @app.get("/")
    async def root():
        """API 상태 확인"""
        return {
            "name": "드롭쉬핑 연동 엔진 API",
            "version": __version__,
            "status": "running",
            "docs": "/docs",
            "health": "/health",
        }

    @app.get("/health")
    async def health_check(request: Request):
        """헬스 체크"""
        services: DropshipServices = request.app.state.services
        try:
            storage_ok = await services.storage.ping()
        except Exception as e:
            logger.error(f"저장소 헬스 체크 실패: {type(e).__name__}")
            storage_ok = False

        summary = global_metrics.get_summary()
        return {
            "status": "healthy" if storage_ok else "degraded",
            "checks": {
                "storage": "healthy" if storage_ok else "unhealthy",
                "scheduler": "enabled" if services.settings.scheduler_enabled else "disabled",
            },
            "metrics": {"api": summary["api"], "orders": summary["orders"]},
        }

    return app


app = create_app()


# CLI 실행을 위한 메인 함수
def run():
    """API 서버 실행"""
    import uvicorn

    settings = get_settings()
    logger.info(f"API 서버 시작: http://{settings.api_host}:{settings.api_port}")

    uvicorn.run(
        "dropship_engine.api.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.is_development(),
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
