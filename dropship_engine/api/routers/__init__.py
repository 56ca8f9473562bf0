"""
API 라우터
"""

from . import dropship, market_data, recommendations, relations, suppliers

__all__ = ["dropship", "market_data", "recommendations", "relations", "suppliers"]
