"""
드롭쉬핑 연동 엔진
공급사 등록, 가격 추천, 상품 추천 검토, 공급사 주문 자동화
"""

__version__ = "1.0.0"
