"""
상품 추천 검토 워크플로우 테스트
"""

import asyncio
from decimal import Decimal

import pytest

from dropship_engine.errors import (
    ConflictError,
    MarginTooLowError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from tests.fixtures.samples import make_candidate


@pytest.fixture
def workflow(services):
    return services.recommendations


@pytest.fixture
async def recommendation(workflow, supplier):
    return await workflow.propose(make_candidate())


class TestPropose:
    """추천 등록 테스트"""

    @pytest.mark.asyncio
    async def test_propose_prices_candidate(self, recommendation):
        assert recommendation.state == "new"
        assert recommendation.suggested_price == Decimal("15.99")
        assert recommendation.margin == Decimal("37.46")
        assert recommendation.markup_percent == Decimal("60")
        assert recommendation.below_minimum_margin is False
        # 마진 50 + 평점 0 + 배송 15.3 + 수수료 6
        assert recommendation.score == 71.3
        assert recommendation.approved is None

    @pytest.mark.asyncio
    async def test_open_recommendation_reused(self, workflow, recommendation):
        again = await workflow.propose(make_candidate(supplierCost="12"))

        assert again.id == recommendation.id
        assert again.suggested_price == Decimal("15.99")

    @pytest.mark.asyncio
    async def test_suspended_supplier_rejected(self, services, workflow, supplier):
        await services.suppliers.suspend_supplier(supplier.id)

        with pytest.raises(ValidationError):
            await workflow.propose(make_candidate())

    @pytest.mark.asyncio
    async def test_unknown_supplier(self, workflow):
        with pytest.raises(NotFoundError):
            await workflow.propose(make_candidate("missing"))

    @pytest.mark.asyncio
    async def test_invalid_candidate(self, workflow, supplier):
        with pytest.raises(ValidationError):
            await workflow.propose(make_candidate(supplierCost="0"))

    @pytest.mark.asyncio
    async def test_low_margin(self, services, workflow, supplier):
        await services.market_data.update({"minimumMargin": 40})

        with pytest.raises(MarginTooLowError):
            await workflow.propose(make_candidate())

        accepted = await workflow.propose(make_candidate(acceptLowMargin=True))
        assert accepted.below_minimum_margin is True

    @pytest.mark.asyncio
    async def test_existing_relation_linked(self, services, workflow, supplier):
        await services.relations.create_relation(
            {"productId": "P7", "provider": supplier.id, "externalId": "X7"}
        )

        recommendation = await workflow.propose(make_candidate(externalId="X7"))

        assert recommendation.linked_product_id == "P7"


class TestReviewFlow:
    """검토 상태 전이 테스트"""

    @pytest.mark.asyncio
    async def test_admin_view_marks_seen_once(self, workflow, recommendation):
        viewed = await workflow.view(recommendation.id, is_admin=False)
        assert viewed.seen is False

        seen = await workflow.view(recommendation.id, is_admin=True)
        assert seen.state == "seen"
        assert seen.seen is True

        again = await workflow.view(recommendation.id, is_admin=True)
        assert again.seen_at == seen.seen_at

    @pytest.mark.asyncio
    async def test_mark_reviewed(self, workflow, recommendation):
        reviewed = await workflow.mark_reviewed(recommendation.id)

        assert reviewed.state == "reviewed"
        assert reviewed.seen and reviewed.reviewed

    @pytest.mark.asyncio
    async def test_view_and_review_never_rewind_decision(self, workflow, recommendation):
        await workflow.decide(recommendation.id, approved=True)

        viewed = await workflow.view(recommendation.id, is_admin=True)
        reviewed = await workflow.mark_reviewed(recommendation.id)

        assert viewed.state == "approved"
        assert reviewed.state == "approved"
        assert reviewed.seen and reviewed.reviewed

    @pytest.mark.asyncio
    async def test_decide_can_be_changed_before_import(self, workflow, recommendation):
        rejected = await workflow.decide(recommendation.id, approved=False)
        assert rejected.approved is False

        approved = await workflow.decide(recommendation.id, approved=True)
        assert approved.approved is True
        assert approved.state == "approved"

    @pytest.mark.asyncio
    async def test_rejected_recommendation_allows_new_proposal(self, workflow, recommendation):
        await workflow.decide(recommendation.id, approved=False)

        fresh = await workflow.propose(make_candidate())

        assert fresh.id != recommendation.id

    @pytest.mark.asyncio
    async def test_missing_recommendation(self, workflow):
        with pytest.raises(NotFoundError):
            await workflow.view("rec_missing", is_admin=True)


class TestImport:
    """추천 가져오기 테스트"""

    @pytest.mark.asyncio
    async def test_import_is_idempotent(self, services, storage, workflow, recommendation):
        """승인 → 가져오기 → 다시 가져오기: 같은 상품 ID, 새 상품 없음"""
        await workflow.decide(recommendation.id, approved=True)

        imported = await workflow.import_recommendation(recommendation.id, "P1")
        again = await workflow.import_recommendation(recommendation.id, "P2")

        assert imported.local_product_id == "P1"
        assert again.local_product_id == "P1"
        assert again.imported is True
        assert await storage.count("products") == 0
        assert len(await services.relations.find_relations(product_id="P1")) == 1
        assert (await services.suppliers.get_supplier("beauty-source")).total_products == 1

    @pytest.mark.asyncio
    async def test_import_creates_catalog_product(self, storage, workflow, recommendation):
        await workflow.decide(recommendation.id, approved=True)

        imported = await workflow.import_recommendation(recommendation.id)
        await workflow.import_recommendation(recommendation.id)

        assert imported.local_product_id.startswith("prod_")
        assert await storage.count("products") == 1
        product = await storage.get("products", imported.local_product_id)
        assert product["price"] == "15.99"
        assert product["status"] == "draft"

    @pytest.mark.asyncio
    async def test_import_requires_approval(self, workflow, recommendation):
        with pytest.raises(ConflictError):
            await workflow.import_recommendation(recommendation.id, "P1")

        await workflow.decide(recommendation.id, approved=False)
        with pytest.raises(ConflictError):
            await workflow.import_recommendation(recommendation.id, "P1")

    @pytest.mark.asyncio
    async def test_imported_is_final(self, workflow, recommendation):
        await workflow.decide(recommendation.id, approved=True)
        await workflow.import_recommendation(recommendation.id, "P1")

        with pytest.raises(ConflictError):
            await workflow.decide(recommendation.id, approved=False)
        with pytest.raises(ConflictError):
            await workflow.delete(recommendation.id)

    @pytest.mark.asyncio
    async def test_approve_again_after_import(self, workflow, recommendation):
        await workflow.decide(recommendation.id, approved=True)
        await workflow.import_recommendation(recommendation.id, "P1")

        again = await workflow.decide(recommendation.id, approved=True)

        assert again.state == "imported"
        assert again.local_product_id == "P1"

    @pytest.mark.asyncio
    async def test_concurrent_approve_and_import(self, services, workflow, recommendation):
        """승인과 가져오기가 동시에 와도 승인 후 가져오기로 직렬화"""
        decided, imported = await asyncio.gather(
            workflow.decide(recommendation.id, approved=True),
            workflow.import_recommendation(recommendation.id, "P1"),
        )

        assert decided.state == "approved"
        assert imported.state == "imported"
        assert imported.local_product_id == "P1"
        assert len(await services.relations.find_relations(product_id="P1")) == 1

    @pytest.mark.asyncio
    async def test_concurrent_imports_create_one_product(self, storage, workflow, recommendation):
        await workflow.decide(recommendation.id, approved=True)

        results = await asyncio.gather(
            *(workflow.import_recommendation(recommendation.id) for _ in range(3))
        )

        assert len({r.local_product_id for r in results}) == 1
        assert await storage.count("products") == 1


class TestApplyUpdate:
    """부분 수정 요청 테스트"""

    @pytest.mark.asyncio
    async def test_requires_admin(self, workflow, recommendation):
        with pytest.raises(PermissionDeniedError):
            await workflow.apply_update(recommendation.id, {"approved": True}, is_admin=False)

    @pytest.mark.asyncio
    async def test_all_steps_in_one_patch(self, workflow, recommendation):
        updated = await workflow.apply_update(
            recommendation.id,
            {"seen": True, "reviewed": True, "approved": True, "imported": True, "localProductId": "P9"},
            is_admin=True,
        )

        assert updated.state == "imported"
        assert updated.local_product_id == "P9"
        assert updated.seen and updated.reviewed and updated.approved

    @pytest.mark.asyncio
    async def test_replayed_import_patch(self, workflow, recommendation):
        patch = {"approved": True, "imported": True, "localProductId": "P1"}
        first = await workflow.apply_update(recommendation.id, patch, is_admin=True)

        second = await workflow.apply_update(recommendation.id, dict(patch), is_admin=True)

        assert first.local_product_id == "P1"
        assert second.state == "imported"
        assert second.local_product_id == "P1"

    @pytest.mark.asyncio
    async def test_delete_before_import(self, workflow, recommendation):
        assert await workflow.delete(recommendation.id) is True

        with pytest.raises(NotFoundError):
            await workflow.get(recommendation.id)


@pytest.mark.asyncio
async def test_list_recommendations(workflow, supplier):
    first = await workflow.propose(make_candidate())
    await workflow.propose(make_candidate(externalId="X2", category="Électronique"))
    await workflow.decide(first.id, approved=True)

    approved = await workflow.list_recommendations(state="approved")
    assert [r.id for r in approved.items] == [first.id]

    everything = await workflow.list_recommendations(supplier_id=supplier.id, limit=1)
    assert everything.total == 2
    assert everything.has_next
    # 점수 내림차순
    assert everything.items[0].score >= (await workflow.list_recommendations(page=2, limit=1)).items[0].score
