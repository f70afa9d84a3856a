"""Administrator endpoints managing discounts and their product effects."""

from __future__ import annotations

import math
from dataclasses import asdict

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from urbansprout.application.use_cases.admin_activity import record_admin_activity
from urbansprout.application.use_cases.discounts import (
    DiscountApplicator,
    create_discount as create_discount_uc,
    delete_discount as delete_discount_uc,
    get_discount as get_discount_uc,
    list_available_discounts_for_product as list_available_discounts_uc,
    list_discounts as list_discounts_uc,
    list_upcoming_discounts as list_upcoming_discounts_uc,
    update_discount as update_discount_uc,
)
from urbansprout.domain.entities import DiscountStatus, User
from urbansprout.infrastructure.database import get_db
from urbansprout.infrastructure.notifications import NotificationDispatcher
from urbansprout.infrastructure.scheduler import DiscountLifecycleScheduler
from urbansprout.interfaces.api.dependencies import (
    get_applicator,
    get_dispatcher,
    get_scheduler,
    require_admin,
)
from urbansprout.interfaces.api.schemas import (
    AvailableDiscountList,
    CategoryApplyRequest,
    CategoryApplyResultRead,
    DiscountCreate,
    DiscountList,
    DiscountRead,
    DiscountUpdate,
    Envelope,
    MessageResponse,
    ProductDiscountRequest,
    ProductPriceRead,
    TickResultRead,
    UpcomingDiscountRead,
)

router = APIRouter(prefix="/admin", tags=["admin-discounts"])


@router.post("/discounts", response_model=Envelope[DiscountRead], status_code=201)
def create_discount(
    payload: DiscountCreate,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
    applicator: DiscountApplicator = Depends(get_applicator),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
) -> Envelope[DiscountRead]:
    discount = create_discount_uc(
        db, applicator, **payload.model_dump(), created_by=admin.id
    )
    record_admin_activity(
        db,
        dispatcher,
        admin=admin,
        action="discount_created",
        description=f"Created discount: {discount.name}",
        target_id=discount.id,
        target_model="discount",
    )
    return Envelope[DiscountRead](
        data=DiscountRead.from_entity(discount), message="Discount created successfully"
    )


@router.get("/discounts", response_model=Envelope[DiscountList])
def list_discounts(
    status: DiscountStatus | None = Query(default=None),
    search: str | None = Query(default=None),
    page: int = Query(default=1),
    limit: int = Query(default=20),
    db: Session = Depends(get_db),
    _: User = Depends(require_admin),
) -> Envelope[DiscountList]:
    discounts, total = list_discounts_uc(
        db, status=status, search=search, page=page, page_size=limit
    )
    return Envelope[DiscountList](
        data=DiscountList(
            discounts=[DiscountRead.from_entity(discount) for discount in discounts],
            total=total,
            current_page=page,
            total_pages=math.ceil(total / limit),
        )
    )


@router.post("/discounts/process", response_model=Envelope[TickResultRead])
async def process_discounts(
    _: User = Depends(require_admin),
    scheduler: DiscountLifecycleScheduler = Depends(get_scheduler),
) -> Envelope[TickResultRead]:
    """Run one discount lifecycle scan right away."""

    result = await scheduler.run_once()
    message = "Discount scan skipped, another scan is running" if result.skipped else None
    return Envelope[TickResultRead](data=TickResultRead(**asdict(result)), message=message)


@router.get("/discounts/{discount_id}", response_model=Envelope[DiscountRead])
def get_discount(
    discount_id: int,
    db: Session = Depends(get_db),
    _: User = Depends(require_admin),
) -> Envelope[DiscountRead]:
    discount = get_discount_uc(db, discount_id)
    return Envelope[DiscountRead](data=DiscountRead.from_entity(discount))


@router.put("/discounts/{discount_id}", response_model=Envelope[DiscountRead])
def update_discount(
    discount_id: int,
    payload: DiscountUpdate,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
    applicator: DiscountApplicator = Depends(get_applicator),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
) -> Envelope[DiscountRead]:
    discount = update_discount_uc(db, applicator, discount_id, changes=payload.changes())
    record_admin_activity(
        db,
        dispatcher,
        admin=admin,
        action="discount_updated",
        description=f"Updated discount: {discount.name}",
        target_id=discount.id,
        target_model="discount",
    )
    return Envelope[DiscountRead](
        data=DiscountRead.from_entity(discount), message="Discount updated successfully"
    )


@router.delete("/discounts/{discount_id}", response_model=MessageResponse)
def delete_discount(
    discount_id: int,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
    applicator: DiscountApplicator = Depends(get_applicator),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
) -> MessageResponse:
    discount = delete_discount_uc(db, applicator, discount_id)
    record_admin_activity(
        db,
        dispatcher,
        admin=admin,
        action="discount_deleted",
        description=f"Deleted discount: {discount.name}",
        target_id=discount_id,
        target_model="discount",
    )
    return MessageResponse(message="Discount deleted successfully")


@router.post(
    "/discounts/{discount_id}/apply-to-category",
    response_model=Envelope[CategoryApplyResultRead],
)
def apply_discount_to_category(
    discount_id: int,
    payload: CategoryApplyRequest,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
    applicator: DiscountApplicator = Depends(get_applicator),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
) -> Envelope[CategoryApplyResultRead]:
    result = applicator.apply_to_category(discount_id, payload.category)
    record_admin_activity(
        db,
        dispatcher,
        admin=admin,
        action="discount_applied",
        description=(
            f"Applied discount {discount_id} to {result.applied} products "
            f"in {payload.category}"
        ),
        target_id=discount_id,
        target_model="discount",
    )
    return Envelope[CategoryApplyResultRead](
        data=CategoryApplyResultRead(**asdict(result)),
        message=f"Discount applied to {result.applied} products",
    )


@router.get(
    "/products/upcoming-discounts", response_model=Envelope[list[UpcomingDiscountRead]]
)
def list_upcoming_discounts(
    category: str | None = Query(default=None),
    limit: int = Query(default=50, ge=1, le=200),
    db: Session = Depends(get_db),
    _: User = Depends(require_admin),
) -> Envelope[list[UpcomingDiscountRead]]:
    upcoming = list_upcoming_discounts_uc(db, category=category, limit=limit)
    return Envelope[list[UpcomingDiscountRead]](
        data=[
            UpcomingDiscountRead(
                discount=DiscountRead.from_entity(item.discount),
                product_count=item.product_count,
                products=[ProductPriceRead.from_entity(product) for product in item.products],
            )
            for item in upcoming
        ]
    )


@router.get(
    "/products/{product_id}/available-discounts",
    response_model=Envelope[AvailableDiscountList],
)
def list_available_discounts(
    product_id: int,
    db: Session = Depends(get_db),
    _: User = Depends(require_admin),
) -> Envelope[AvailableDiscountList]:
    discounts = list_available_discounts_uc(db, product_id)
    return Envelope[AvailableDiscountList](
        data=AvailableDiscountList(
            discounts=[DiscountRead.from_entity(discount) for discount in discounts]
        )
    )


@router.put("/products/{product_id}/discount", response_model=Envelope[ProductPriceRead])
def apply_discount_to_product(
    product_id: int,
    payload: ProductDiscountRequest,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
    applicator: DiscountApplicator = Depends(get_applicator),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
) -> Envelope[ProductPriceRead]:
    product = applicator.apply_to_product(product_id, payload.discount_id)
    record_admin_activity(
        db,
        dispatcher,
        admin=admin,
        action="product_updated",
        description=f"Applied discount {payload.discount_id} to product: {product.name}",
        target_id=product_id,
        target_model="product",
    )
    return Envelope[ProductPriceRead](
        data=ProductPriceRead.from_entity(product), message="Discount applied successfully"
    )


@router.delete(
    "/products/{product_id}/discount/{discount_id}",
    response_model=Envelope[ProductPriceRead],
)
def remove_discount_from_product(
    product_id: int,
    discount_id: int,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
    applicator: DiscountApplicator = Depends(get_applicator),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
) -> Envelope[ProductPriceRead]:
    product = applicator.remove_from_product(product_id, discount_id)
    record_admin_activity(
        db,
        dispatcher,
        admin=admin,
        action="product_updated",
        description=f"Removed discount {discount_id} from product: {product.name}",
        target_id=product_id,
        target_model="product",
    )
    return Envelope[ProductPriceRead](
        data=ProductPriceRead.from_entity(product), message="Discount removed successfully"
    )
