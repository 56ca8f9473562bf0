"""
테스트 샘플 데이터
"""

from typing import Any, Dict, List, Optional


def make_supplier_profile(name: str = "Beauty Source", **overrides) -> Dict[str, Any]:
    """공급사 등록 요청 샘플"""
    profile: Dict[str, Any] = {
        "name": name,
        "country": "FR",
        "description": "유럽 화장품 드롭쉬핑 공급사",
        "website": "https://beauty-source.example",
        "commission": 12,
        "shippingTime": 7,
        "categories": ["Beauté & Bien-être"],
        "contact": {"email": "ops@beauty-source.example", "name": "Claire"},
        "adapter": "fake",
        "credentials": {"api_key": "secret-key-123"},
    }
    profile.update(overrides)
    return profile


def make_candidate(supplier_id: str = "beauty-source", **overrides) -> Dict[str, Any]:
    """추천 후보 샘플 (공급가 10, 화장품, 경쟁 보통)"""
    candidate: Dict[str, Any] = {
        "supplierId": supplier_id,
        "externalId": "X1",
        "title": "비타민C 세럼",
        "category": "Beauté & Bien-être",
        "supplierCost": "10",
        "competitionLevel": "medium",
        "externalUrl": "https://beauty-source.example/p/X1",
    }
    candidate.update(overrides)
    return candidate


SHIPPING_ADDRESS: Dict[str, Any] = {
    "name": "Jean Dupont",
    "address1": "1 rue de Rivoli",
    "city": "Paris",
    "postalCode": "75001",
    "country": "FR",
    "phone": "+33123456789",
}


def make_customer_order(
    order_id: str = "C1", line_items: Optional[List[Dict[str, Any]]] = None
) -> Dict[str, Any]:
    """고객 주문 샘플"""
    return {
        "id": order_id,
        "lineItems": line_items
        if line_items is not None
        else [{"productId": "P1", "quantity": 1, "supplierId": "beauty-source", "externalId": "X1", "unitCost": "10"}],
        "shippingAddress": dict(SHIPPING_ADDRESS),
        "currency": "EUR",
    }
