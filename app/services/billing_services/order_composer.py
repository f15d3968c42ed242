# app/services/billing_services/order_composer.py
"""
Order composition workflow.

An order is put together as an immutable `OrderDraft`. Every user action is a
pure function that takes a draft and returns a new one, so the steps of the
form never share hidden state:

    SELECTING_CUSTOMER -> SELECTING_ORDER_TYPE -> SELECTING_PRODUCTS
        -> ENTERING_DETAILS -> REVIEWING -> SUBMITTING -> SUCCEEDED | FAILED

The stage follows from how complete the draft is (a customer unlocks the order
type, a first product unlocks the details). Going back is always allowed, e.g.
`change_customer` returns to SELECTING_CUSTOMER.

Nothing is written to the database until `submit_order`; abandoning a draft
leaves no trace.
"""
import enum
import logging
from dataclasses import dataclass, field, replace
from datetime import date, datetime, time, timezone
from decimal import Decimal
from typing import List, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import ORDER_ID_MAX_ATTEMPTS
from app.core.exceptions import (
    OrderConflictError,
    OrderValidationError,
    DuplicateProductError,
)
from app.models.billing_models.order_models import OrderType, OrderDeliveryStatus
from app.models.inventory_models import OrderStatus
from app.schemas.billing_schemas.order_schema import OrderCreate, OrderLineIn
from app.services.billing_services import order_service
from app.services.billing_services.order_identifier import generate_order_id, disambiguate_order_id
from app.services.billing_services.pricing import OrderTotals, compute_totals
from app.utils.decimal_utils import to_decimal, to_money

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


class DraftStage(str, enum.Enum):
    SELECTING_CUSTOMER = "SELECTING_CUSTOMER"
    SELECTING_ORDER_TYPE = "SELECTING_ORDER_TYPE"
    SELECTING_PRODUCTS = "SELECTING_PRODUCTS"
    ENTERING_DETAILS = "ENTERING_DETAILS"
    REVIEWING = "REVIEWING"
    SUBMITTING = "SUBMITTING"
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"


class RejectReason(str, enum.Enum):
    CUSTOMER_REQUIRED = "CUSTOMER_REQUIRED"
    PRODUCTS_REQUIRED = "PRODUCTS_REQUIRED"
    INVALID_PRICE = "INVALID_PRICE"
    CONTRACT_DATE_REQUIRED = "CONTRACT_DATE_REQUIRED"
    INVALID_DISCOUNT = "INVALID_DISCOUNT"
    ZERO_TOTAL = "ZERO_TOTAL"
    NEGATIVE_TOTAL = "NEGATIVE_TOTAL"
    INVALID_SECURITY_DEPOSIT = "INVALID_SECURITY_DEPOSIT"
    PRODUCT_UNAVAILABLE = "PRODUCT_UNAVAILABLE"
    CUSTOMER_REQUIRED_FIRST = "CUSTOMER_REQUIRED_FIRST"


@dataclass(frozen=True)
class DraftLine:
    ads_id: str
    brand: str = ""
    model: str = ""
    price: Decimal = ZERO


@dataclass(frozen=True)
class OrderDraft:
    stage: DraftStage = DraftStage.SELECTING_CUSTOMER
    customer_id: Optional[int] = None
    customer_code: Optional[str] = None
    customer_name: Optional[str] = None
    order_type: OrderType = OrderType.PURCHASE
    order_type_chosen: bool = False
    lines: Tuple[DraftLine, ...] = ()
    contract_date: Optional[date] = None
    estimated_delivery_date: Optional[date] = None
    delivery_date: Optional[date] = None
    order_delivery_status: OrderDeliveryStatus = OrderDeliveryStatus.pending
    discount_percentage: Decimal = ZERO
    security_deposit: Decimal = ZERO
    order_id: Optional[str] = None
    failure: Optional[str] = None

    @property
    def ads_ids(self) -> List[str]:
        return [line.ads_id for line in self.lines]

    def totals(self) -> OrderTotals:
        return compute_totals(self.lines, self.discount_percentage, self.order_type, self.security_deposit)


@dataclass
class OrderSubmission:
    draft: OrderDraft
    order: object
    history_updates: list = field(default_factory=list)


# ---------------------------------------------------
# Transitions
# ---------------------------------------------------
def _derive_stage(draft: OrderDraft) -> OrderDraft:
    if draft.customer_id is None:
        stage = DraftStage.SELECTING_CUSTOMER
    elif not draft.order_type_chosen:
        stage = DraftStage.SELECTING_ORDER_TYPE
    elif not draft.lines:
        stage = DraftStage.SELECTING_PRODUCTS
    else:
        stage = DraftStage.ENTERING_DETAILS
    return replace(draft, stage=stage, failure=None)


def new_draft(today: Optional[date] = None) -> OrderDraft:
    today = today or datetime.now(timezone.utc).date()
    return OrderDraft(contract_date=today)


def select_customer(draft: OrderDraft, client) -> OrderDraft:
    """`client` is anything with `id`, `customer_id` and `name` (ORM row or schema)."""
    return _derive_stage(replace(
        draft,
        customer_id=client.id,
        customer_code=getattr(client, "customer_id", None),
        customer_name=getattr(client, "name", None),
    ))


def change_customer(draft: OrderDraft) -> OrderDraft:
    return _derive_stage(replace(draft, customer_id=None, customer_code=None, customer_name=None))


def choose_order_type(draft: OrderDraft, order_type) -> OrderDraft:
    if draft.customer_id is None:
        raise OrderValidationError(RejectReason.CUSTOMER_REQUIRED_FIRST.value, "Select a customer before the order type")
    order_type = OrderType(order_type)
    updated = replace(draft, order_type=order_type, order_type_chosen=True)
    if order_type != OrderType.RENT:
        updated = replace(updated, security_deposit=ZERO)
    return _derive_stage(updated)


def add_product(draft: OrderDraft, product) -> OrderDraft:
    """
    Append a product line priced at the product's cost price.
    Adding a product that is already in the draft is rejected, not ignored.
    """
    if product.ads_id in draft.ads_ids:
        raise DuplicateProductError(product.ads_id)

    status = getattr(product, "order_status", OrderStatus.INVENTORY.value)
    if OrderStatus(status) != OrderStatus.INVENTORY:
        raise OrderValidationError(
            RejectReason.PRODUCT_UNAVAILABLE.value,
            f"Product {product.ads_id} is not available for a new order",
        )

    line = DraftLine(
        ads_id=product.ads_id,
        brand=getattr(product, "brand", "") or "",
        model=getattr(product, "model", "") or "",
        price=to_decimal(getattr(product, "cost_price", None)),
    )
    return _derive_stage(replace(draft, lines=draft.lines + (line,)))


def remove_product(draft: OrderDraft, ads_id: str) -> OrderDraft:
    return _derive_stage(replace(draft, lines=tuple(l for l in draft.lines if l.ads_id != ads_id)))


def update_line_price(draft: OrderDraft, ads_id: str, price) -> OrderDraft:
    price = to_decimal(price)
    lines = tuple(replace(l, price=price) if l.ads_id == ads_id else l for l in draft.lines)
    return _derive_stage(replace(draft, lines=lines))


_DETAIL_FIELDS = {
    "contract_date",
    "estimated_delivery_date",
    "delivery_date",
    "order_delivery_status",
    "discount_percentage",
    "security_deposit",
}


def update_details(draft: OrderDraft, **changes) -> OrderDraft:
    unknown = set(changes) - _DETAIL_FIELDS
    if unknown:
        raise TypeError(f"Unknown order detail(s): {', '.join(sorted(unknown))}")
    if "order_delivery_status" in changes:
        changes["order_delivery_status"] = OrderDeliveryStatus(changes["order_delivery_status"])
    for key in ("discount_percentage", "security_deposit"):
        if key in changes:
            changes[key] = to_decimal(changes[key])
    return _derive_stage(replace(draft, **changes))


def review(draft: OrderDraft) -> OrderDraft:
    validate_order(draft)
    return replace(draft, stage=DraftStage.REVIEWING, failure=None)


def mark_submitting(draft: OrderDraft) -> OrderDraft:
    return replace(draft, stage=DraftStage.SUBMITTING, failure=None)


def mark_succeeded(draft: OrderDraft, order_id: str) -> OrderDraft:
    return replace(draft, stage=DraftStage.SUCCEEDED, order_id=order_id, failure=None)


def mark_failed(draft: OrderDraft, reason: str) -> OrderDraft:
    return replace(draft, stage=DraftStage.FAILED, failure=reason)


# ---------------------------------------------------
# Validation gate
# ---------------------------------------------------
def validate_order(draft: OrderDraft) -> OrderTotals:
    """
    Check the draft before anything is sent to the database.
    Raises OrderValidationError naming the first rule that fails,
    returns the computed totals otherwise.
    """
    if draft.customer_id is None:
        raise OrderValidationError(RejectReason.CUSTOMER_REQUIRED.value, "Please select or create a customer")

    if not draft.lines:
        raise OrderValidationError(RejectReason.PRODUCTS_REQUIRED.value, "Please add at least one product to the order")

    seen = set()
    for ads_id in draft.ads_ids:
        if ads_id in seen:
            raise DuplicateProductError(ads_id)
        seen.add(ads_id)

    # Prices are stored to the cent, so a line that rounds to 0.00 is free
    if any(to_money(line.price) <= 0 for line in draft.lines):
        raise OrderValidationError(RejectReason.INVALID_PRICE.value, "All product selling prices must be greater than 0")

    if not draft.contract_date:
        raise OrderValidationError(RejectReason.CONTRACT_DATE_REQUIRED.value, "Please select a contract date")

    discount = to_decimal(draft.discount_percentage)
    if discount < 0 or discount > 100:
        raise OrderValidationError(RejectReason.INVALID_DISCOUNT.value, "Discount must be between 0 and 100%")

    totals = draft.totals()
    stored = totals.rounded()

    if draft.order_type == OrderType.PURCHASE:
        if stored.subtotal == 0:
            raise OrderValidationError(RejectReason.ZERO_TOTAL.value, "Total amount cannot be zero for PURCHASE orders")
        if stored.total < 0:
            raise OrderValidationError(
                RejectReason.NEGATIVE_TOTAL.value,
                "Total payment cannot be negative. Adjust discount percentage.",
            )

    if draft.order_type == OrderType.RENT and to_decimal(draft.security_deposit) < 0:
        raise OrderValidationError(RejectReason.INVALID_SECURITY_DEPOSIT.value, "Security deposit cannot be negative")

    return totals


# ---------------------------------------------------
# Request building / submission
# ---------------------------------------------------
def _as_datetime(value) -> Optional[datetime]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    return datetime.combine(value, time.min, tzinfo=timezone.utc)


def build_order_request(draft: OrderDraft, actor: str, now: datetime, order_id: Optional[str] = None) -> OrderCreate:
    return OrderCreate(
        customer_id=draft.customer_id,
        order_id=order_id or generate_order_id(draft.customer_id, now),
        order_type=draft.order_type,
        products=[OrderLineIn(ads_id=l.ads_id, price=to_decimal(l.price)) for l in draft.lines],
        contract_date=_as_datetime(draft.contract_date),
        estimated_delivery_date=_as_datetime(draft.estimated_delivery_date),
        delivery_date=_as_datetime(draft.delivery_date),
        order_delivery_status=draft.order_delivery_status,
        discount_percentage=to_decimal(draft.discount_percentage),
        security_deposit=to_decimal(draft.security_deposit) if draft.order_type == OrderType.RENT else ZERO,
        created_by=actor,
    )


def draft_from_request(payload: OrderCreate) -> OrderDraft:
    """Rebuild a draft from a posted order so the server runs the same gate."""
    draft = OrderDraft(
        customer_id=payload.customer_id,
        order_type=OrderType(payload.order_type),
        order_type_chosen=True,
        lines=tuple(DraftLine(ads_id=l.ads_id, price=to_decimal(l.price)) for l in payload.products),
        contract_date=payload.contract_date,
        estimated_delivery_date=payload.estimated_delivery_date,
        delivery_date=payload.delivery_date,
        order_delivery_status=OrderDeliveryStatus(payload.order_delivery_status),
        discount_percentage=to_decimal(payload.discount_percentage),
        security_deposit=to_decimal(payload.security_deposit),
        order_id=payload.order_id,
    )
    return _derive_stage(draft)


async def submit_order(db: AsyncSession, draft: OrderDraft, current_user, now: Optional[datetime] = None) -> OrderSubmission:
    """
    Validate the draft and persist it as one order.

    Validation failures never reach the database. The only failure retried
    here is an order id that is already taken, which gets a suffix; stock
    conflicts and any other error are raised to the caller as-is, with the
    FAILED draft attached as `exc.draft`.
    """
    now = now or datetime.now(timezone.utc)
    try:
        validate_order(draft)
    except OrderValidationError as exc:
        logger.info("Order draft rejected: %s", exc.reason)
        raise

    actor = current_user.username
    base_id = draft.order_id or generate_order_id(draft.customer_id, now)
    submitting = mark_submitting(draft)

    try:
        for attempt in range(max(ORDER_ID_MAX_ATTEMPTS, 1)):
            order_id = disambiguate_order_id(base_id, attempt)
            payload = build_order_request(submitting, actor, now, order_id=order_id)
            try:
                order, snapshots = await order_service.create_order(db, payload, actor, now=now)
            except OrderConflictError as exc:
                if exc.reason != order_service.DUPLICATE_ORDER_ID:
                    raise
                logger.info("Order id %s already taken, trying next suffix", order_id)
                continue

            return OrderSubmission(
                draft=mark_succeeded(submitting, order.order_id),
                order=order,
                history_updates=snapshots,
            )

        raise OrderConflictError(
            order_service.DUPLICATE_ORDER_ID,
            f"Could not allocate a free order id for {base_id}; please retry",
        )
    except Exception as exc:
        exc.draft = mark_failed(submitting, getattr(exc, "reason", None) or type(exc).__name__)
        raise
