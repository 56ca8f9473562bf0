#!/usr/bin/env python3
"""
드롭쉬핑 연동 엔진 메인 엔트리 포인트
"""

import asyncio
import json

import click
from loguru import logger

from dropship_engine.config import get_settings
from dropship_engine.errors import DropshipError
from dropship_engine.monitoring import setup_logging
from dropship_engine.services import build_services


def _run(coro_factory):
    """서비스를 구성해 비동기 작업 1회 실행"""
    settings = get_settings()
    setup_logging(log_level=settings.log_level, log_file=settings.log_file)

    async def runner():
        services = build_services(settings)
        try:
            return await coro_factory(services)
        finally:
            await services.close()

    return asyncio.run(runner())


@click.group()
def cli():
    """드롭쉬핑 연동 엔진 CLI"""
    pass


@cli.command()
def serve():
    """API 서버 실행"""
    from dropship_engine.api.main import run

    run()


@cli.command()
def track():
    """진행 중인 공급사 주문 상태를 한 번 추적"""
    logger.info("공급사 주문 추적 시작")

    async def sweep(services):
        return await services.orders.track_open_orders()

    results = _run(sweep)
    changed = sum(1 for r in results if r.changed)
    failed = sum(1 for r in results if r.error)
    logger.info(f"공급사 주문 추적 완료: 전체 {len(results)}건, 변경 {changed}건, 실패 {failed}건")


@cli.command("market-data")
def market_data():
    """현재 시장 데이터 출력"""

    async def current(services):
        return await services.market_data.get_current()

    data = _run(current)
    click.echo(json.dumps(data.to_api(), ensure_ascii=False, indent=2))


@cli.command()
@click.option("--supplier", "supplier_id", default=None, help="공급사 ID")
def stats(supplier_id):
    """드롭쉬핑 통계 출력"""

    async def collect(services):
        return await services.stats.get_stats(supplier_id=supplier_id)

    result = _run(collect)
    click.echo(json.dumps(result.to_api(), ensure_ascii=False, indent=2))


@cli.command()
@click.argument("order_id")
def requeue(order_id: str):
    """실패한 공급사 주문 재전달 (관리자)"""
    logger.info(f"실패 주문 재전달: {order_id}")

    async def resubmit(services):
        return await services.orders.requeue_failed(order_id, is_admin=True)

    try:
        order = _run(resubmit)
    except DropshipError as e:
        logger.error(f"재전달 실패: {e.message}")
        raise SystemExit(1)

    logger.info(f"재전달 결과: {order.id} → {order.status}")


if __name__ == "__main__":
    cli()
