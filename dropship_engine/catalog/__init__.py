"""
카탈로그 연결 관리
"""

from dropship_engine.catalog.relations import RelationMapper, relation_id

__all__ = ["RelationMapper", "relation_id"]
