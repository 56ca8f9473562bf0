"""
상품 소싱 추천
"""

from dropship_engine.sourcing.recommendations import (
    LocalCatalog,
    RecommendationWorkflow,
    StorageCatalog,
)

__all__ = ["LocalCatalog", "RecommendationWorkflow", "StorageCatalog"]
