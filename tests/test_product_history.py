from datetime import datetime, timezone
from decimal import Decimal
from types import SimpleNamespace

import pytest
from fastapi import HTTPException
from pydantic import ValidationError

from app.schemas.billing_schemas.order_schema import OrderCreate
from app.schemas.inventory_schemas import ProductUpdate
from app.services.billing_services import order_service
from app.services.inventory_services import product_service
from app.services.inventory_services.product_history import (
    diff_states,
    get_product_history,
    iter_product_history,
)


def snapshot(id, **state):
    return SimpleNamespace(id=id, product_state=state)


def test_first_entry_has_no_changes():
    entries = list(iter_product_history([snapshot(1, brand="Dell")]))
    assert entries[0].changes == ()


def test_changes_between_consecutive_snapshots():
    entries = list(iter_product_history([
        snapshot(1, brand="Dell", prod_health="working", order_status="INVENTORY"),
        snapshot(2, brand="Dell", prod_health="repair", order_status="INVENTORY"),
        snapshot(3, brand="Dell", prod_health="repair", order_status="RENT"),
    ]))

    assert [(c.field, c.old_value, c.new_value) for c in entries[1].changes] == [("prod_health", "working", "repair")]
    assert [(c.field, c.old_value, c.new_value) for c in entries[2].changes] == [("order_status", "INVENTORY", "RENT")]


def test_missing_value_counts_as_change():
    changes = diff_states({"specifications": None}, {"specifications": "i7 / 16GB"})
    assert [(c.field, c.old_value, c.new_value) for c in changes] == [("specifications", None, "i7 / 16GB")]


def test_untracked_fields_are_ignored():
    assert diff_states({"last_modified_by": "asha"}, {"last_modified_by": "ravi"}) == ()


def test_history_is_recomputed_on_each_walk():
    snapshots = [snapshot(1, brand="Dell"), snapshot(2, brand="HP")]
    first = [e.changes for e in iter_product_history(snapshots)]
    second = [e.changes for e in iter_product_history(snapshots)]
    assert first == second


async def test_new_product_has_single_created_entry(db, make_product):
    product = await make_product()

    history = (await get_product_history(db, product.ads_id)).data

    assert history.version == 1
    assert [s.action for s in history.audit_trail] == ["CREATED"]
    assert history.diffs == []
    assert history.audit_trail[0].product_state["cost_price"] == "1000.00"


async def test_updates_show_up_as_diffs(db, sales_user, make_product):
    product = await make_product()

    await product_service.update_product(
        db, product.ads_id, ProductUpdate(prod_health="maintenance", specifications="i5 / 8GB"), sales_user
    )
    await product_service.update_product(db, product.ads_id, ProductUpdate(cost_price=Decimal("900")), sales_user)

    history = (await get_product_history(db, product.ads_id)).data

    assert history.version == 3
    assert [s.action for s in history.audit_trail] == ["CREATED", "UPDATED", "UPDATED"]
    assert {c.field: (c.old_value, c.new_value) for c in history.diffs[0].changes} == {
        "prod_health": ("working", "maintenance"),
        "specifications": (None, "i5 / 8GB"),
    }
    assert [(c.field, c.old_value, c.new_value) for c in history.diffs[1].changes] == [
        ("cost_price", "1000.00", "900.00")
    ]
    assert history.diffs[1].updated_by == "asha"


async def test_noop_update_leaves_trail_alone(db, sales_user, make_product):
    product = await make_product()
    await product_service.update_product(db, product.ads_id, ProductUpdate(brand="Dell"), sales_user)

    assert (await get_product_history(db, product.ads_id)).data.version == 1


async def test_order_claim_appears_in_history(db, client_record, make_product):
    product = await make_product()
    await order_service.create_order(
        db,
        OrderCreate(
            customer_id=client_record.id,
            order_id="ORD-HIST",
            order_type="RENT",
            products=[{"ads_id": product.ads_id, "price": 1200}],
            contract_date=datetime.now(timezone.utc),
        ),
        "asha",
    )

    history = (await get_product_history(db, product.ads_id)).data

    assert history.version == 2
    assert history.audit_trail[-1].note == "Assigned to order ORD-HIST (RENT)"
    assert {c.field: (c.old_value, c.new_value) for c in history.diffs[0].changes} == {
        "order_status": ("INVENTORY", "RENT"),
        "prod_status": ("available", "leased"),
    }


async def test_repeated_reads_are_identical(db, sales_user, make_product):
    product = await make_product()
    await product_service.update_product(db, product.ads_id, ProductUpdate(prod_status="returned"), sales_user)

    first = await get_product_history(db, product.ads_id)
    second = await get_product_history(db, product.ads_id)
    assert first.model_dump() == second.model_dump()


async def test_unknown_product_is_404(db):
    with pytest.raises(HTTPException) as exc:
        await get_product_history(db, "000404")
    assert exc.value.status_code == 404


def test_update_rejects_null_for_required_fields():
    with pytest.raises(ValidationError):
        ProductUpdate(brand=None)
    with pytest.raises(ValidationError):
        ProductUpdate(cost_price=None)

    assert ProductUpdate(specifications=None).model_dump(exclude_unset=True) == {"specifications": None}
