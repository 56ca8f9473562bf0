"""
주문 추적 스케줄러
진행 중인 공급사 주문의 상태를 주기적으로 추적
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from loguru import logger

from dropship_engine.config import OrderAutomationConfig, get_settings
from dropship_engine.orders.automation import OrderAutomationService
from dropship_engine.storage.base import BaseStorage

JOB_LOG_COLLECTION = "job_logs"


class TrackingScheduler:
    """주문 추적 스케줄러"""

    def __init__(
        self,
        automation: OrderAutomationService,
        storage: BaseStorage,
        config: Optional[OrderAutomationConfig] = None,
    ):
        """
        초기화

        Args:
            automation: 주문 자동화 서비스
            storage: 작업 기록 저장소
            config: 추적 주기 설정
        """
        self.automation = automation
        self.storage = storage
        self.config = config or get_settings().orders

        self.scheduler = AsyncIOScheduler()
        self._setup_jobs()

    def _setup_jobs(self):
        """스케줄 작업 설정"""
        self.scheduler.add_job(
            self.track_open_orders,
            IntervalTrigger(minutes=self.config.tracking_interval_minutes),
            id="track_open_orders",
            name="공급사 주문 추적",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )

    async def track_open_orders(self) -> Dict[str, Any]:
        """진행 중 주문 추적 작업"""
        try:
            logger.info("공급사 주문 추적 시작")
            results = await self.automation.track_open_orders()

            summary = {
                "total": len(results),
                "changed": sum(1 for r in results if r.changed),
                "failed": sum(1 for r in results if r.error),
                "skipped": sum(1 for r in results if r.skipped),
            }
            logger.info(
                f"공급사 주문 추적 완료: 변경 {summary['changed']}건, 실패 {summary['failed']}건"
            )
            await self._save_job_log("track_open_orders", "success", results=summary)
            return summary

        except Exception as e:
            logger.error(f"공급사 주문 추적 실패: {str(e)}")
            await self._save_job_log("track_open_orders", "error", error_message=str(e))
            return {"error": str(e)}

    async def _save_job_log(self, job_id: str, status: str, **fields):
        """작업 결과 저장"""
        try:
            await self.storage.create(
                JOB_LOG_COLLECTION,
                {
                    "job_id": job_id,
                    "job_type": "order_tracking",
                    "status": status,
                    "executed_at": datetime.now().isoformat(),
                    **fields,
                },
            )
        except Exception as e:
            logger.error(f"작업 결과 저장 실패: {str(e)}")

    def start(self):
        """스케줄러 시작"""
        if not self.scheduler.running:
            self.scheduler.start()
            logger.info("주문 추적 스케줄러 시작됨")
        else:
            logger.warning("주문 추적 스케줄러가 이미 실행 중입니다")

    def stop(self):
        """스케줄러 중지"""
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            logger.info("주문 추적 스케줄러 중지됨")

    def get_jobs(self) -> List[Dict[str, Any]]:
        """현재 스케줄된 작업 목록 반환"""
        return [
            {
                "id": job.id,
                "name": job.name,
                "next_run_time": getattr(job, "next_run_time", None),
                "trigger": str(job.trigger),
            }
            for job in self.scheduler.get_jobs()
        ]
