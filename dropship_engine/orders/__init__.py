"""
공급사 주문 자동화
"""

from dropship_engine.orders.automation import OrderAutomationService, idempotency_token
from dropship_engine.orders.error_queue import AdminErrorQueue

__all__ = ["OrderAutomationService", "AdminErrorQueue", "idempotency_token"]
