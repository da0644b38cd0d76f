from datetime import timedelta

import pytest

from app.core.clock import utc_today
from app.core.exceptions import NotFoundError, ValidationError
from app.models import InventoryLog, PurchaseOrderReceipt, PurchaseOrderStatus
from app.services.receiving import ReceiptLine, receive_items
from tests.factories import make_product, make_purchase_order, make_supplier


def restock_logs(db, product):
    return (
        db.query(InventoryLog)
        .filter(InventoryLog.product_id == product.id, InventoryLog.change_type == "restock")
        .order_by(InventoryLog.id)
        .all()
    )


@pytest.fixture
def supplier(db, store_a):
    return make_supplier(db, store_a)


def test_full_receipt_delivers_the_order(db, store_a, repo_a, supplier):
    product = make_product(db, store_a, stock_quantity=5)
    po = make_purchase_order(db, store_a, supplier, [(product, 100)])
    item = po.items[0]

    result = receive_items(repo_a, po.id, [ReceiptLine(item_id=item.id, received_quantity=100)])

    db.refresh(item)
    db.refresh(product)
    db.refresh(po)
    assert item.quantity_received == 100
    assert product.stock_quantity == 105
    assert po.status == PurchaseOrderStatus.DELIVERED
    assert po.actual_delivery == utc_today()
    assert result.delivered is True
    assert result.partial is False

    logs = restock_logs(db, product)
    assert len(logs) == 1
    assert logs[0].quantity_change == 100
    assert logs[0].quantity_after == 105
    assert logs[0].reference_type == "purchase_order"
    assert logs[0].reference_id == po.id
    assert [h.new_status for h in po.status_history] == ["delivered"]


def test_receipts_are_additive(db, store_a, repo_a, supplier):
    product = make_product(db, store_a)
    po = make_purchase_order(db, store_a, supplier, [(product, 50)])
    item_id = po.items[0].id

    first = receive_items(repo_a, po.id, [ReceiptLine(item_id=item_id, received_quantity=20)])
    second = receive_items(repo_a, po.id, [ReceiptLine(item_id=item_id, received_quantity=10)])

    db.refresh(po)
    db.refresh(product)
    assert po.items[0].quantity_received == 30
    assert product.stock_quantity == 30
    assert first.status == second.status == "approved"
    assert len(restock_logs(db, product)) == 2
    assert db.query(PurchaseOrderReceipt).filter(PurchaseOrderReceipt.purchase_order_id == po.id).count() == 2


def test_received_quantity_is_clamped_to_pending(db, store_a, repo_a, supplier):
    product = make_product(db, store_a)
    po = make_purchase_order(db, store_a, supplier, [(product, 10, 4)])

    result = receive_items(repo_a, po.id, [ReceiptLine(item_id=po.items[0].id, received_quantity=25)])

    db.refresh(product)
    assert result.received[0]["quantity_received"] == 6
    assert result.received[0]["clamped"] is True
    assert product.stock_quantity == 6
    assert result.delivered is True


def test_duplicate_lines_share_the_pending_quantity(db, store_a, repo_a, supplier):
    product = make_product(db, store_a)
    po = make_purchase_order(db, store_a, supplier, [(product, 10)])
    item_id = po.items[0].id

    result = receive_items(repo_a, po.id, [
        ReceiptLine(item_id=item_id, received_quantity=8),
        ReceiptLine(item_id=item_id, received_quantity=8),
        ReceiptLine(item_id=item_id, received_quantity=8),
    ])

    assert [r["quantity_received"] for r in result.received] == [8, 2]
    assert result.skipped[0]["reason"] == "Item already fully received"
    db.refresh(po)
    assert po.items[0].quantity_received == 10


def test_order_stays_open_until_every_item_is_received(db, store_a, repo_a, supplier):
    shirt = make_product(db, store_a, "SHIRT")
    mug = make_product(db, store_a, "MUG")
    po = make_purchase_order(db, store_a, supplier, [(shirt, 10), (mug, 5)])
    shirt_item, mug_item = po.items

    first = receive_items(repo_a, po.id, [ReceiptLine(item_id=shirt_item.id, received_quantity=10)])
    assert first.delivered is False
    assert first.status == "approved"

    second = receive_items(repo_a, po.id, [ReceiptLine(item_id=mug_item.id, received_quantity=5)])
    assert second.delivered is True
    assert second.status == "delivered"


def test_damaged_units_are_not_stocked_by_default(db, store_a, repo_a, supplier):
    product = make_product(db, store_a)
    po = make_purchase_order(db, store_a, supplier, [(product, 10)])
    line = ReceiptLine(item_id=po.items[0].id, received_quantity=10, quality_status="rejected", damaged_quantity=3)

    result = receive_items(repo_a, po.id, [line])

    db.refresh(product)
    db.refresh(po)
    assert po.items[0].quantity_received == 10
    assert product.stock_quantity == 7
    assert result.delivered is True
    log = restock_logs(db, product)[0]
    assert log.quantity_change == 7
    assert "3 damaged" in log.notes
    receipt = po.receipts[0]
    assert receipt.damaged_quantity == 3
    assert receipt.quality_status == "rejected"


def test_damaged_units_can_count_toward_stock(db, store_a, repo_a, supplier):
    product = make_product(db, store_a)
    po = make_purchase_order(db, store_a, supplier, [(product, 10)])
    line = ReceiptLine(item_id=po.items[0].id, received_quantity=4, damaged_quantity=9)

    result = receive_items(repo_a, po.id, [line], damaged_in_stock=True)

    db.refresh(product)
    assert product.stock_quantity == 4
    assert result.received[0]["damaged_quantity"] == 4


def test_invalid_lines_are_skipped_with_reasons(db, store_a, repo_a, supplier):
    product = make_product(db, store_a)
    po = make_purchase_order(db, store_a, supplier, [(product, 10)])

    result = receive_items(repo_a, po.id, [
        ReceiptLine(item_id=po.items[0].id, received_quantity=3),
        ReceiptLine(item_id=999, received_quantity=2),
        ReceiptLine(item_id=po.items[0].id, received_quantity=0),
    ])

    assert len(result.received) == 1
    assert result.partial is True
    assert [s["reason"] for s in result.skipped] == [
        "Item not found on this purchase order",
        "Received quantity must be greater than zero",
    ]
    payload = result.to_dict()
    assert payload["received_items"] == 1
    assert payload["partial"] is True


def test_strict_mode_rolls_back_everything(db, store_a, repo_a, supplier):
    product = make_product(db, store_a)
    po = make_purchase_order(db, store_a, supplier, [(product, 10)])
    item_id = po.items[0].id

    with pytest.raises(ValidationError) as exc_info:
        receive_items(repo_a, po.id, [
            ReceiptLine(item_id=item_id, received_quantity=3),
            ReceiptLine(item_id=999, received_quantity=2),
        ], strict=True)

    assert exc_info.value.details[0]["item_id"] == 999
    db.expire_all()
    assert po.items[0].quantity_received == 0
    assert product.stock_quantity == 0
    assert restock_logs(db, product) == []


def test_terminal_orders_reject_receipts(db, store_a, repo_a, supplier):
    product = make_product(db, store_a)
    for number, status in (("PO-001", PurchaseOrderStatus.DELIVERED), ("PO-002", PurchaseOrderStatus.CANCELLED)):
        po = make_purchase_order(db, store_a, supplier, [(product, 10)], status=status, number=number)
        with pytest.raises(ValidationError):
            receive_items(repo_a, po.id, [ReceiptLine(item_id=po.items[0].id, received_quantity=1)])


def test_requires_a_positive_line(db, store_a, repo_a, supplier):
    product = make_product(db, store_a)
    po = make_purchase_order(db, store_a, supplier, [(product, 10)])

    with pytest.raises(ValidationError):
        receive_items(repo_a, po.id, [ReceiptLine(item_id=po.items[0].id, received_quantity=0)])


def test_nothing_receivable_is_rejected(db, store_a, repo_a, supplier):
    product = make_product(db, store_a)
    po = make_purchase_order(db, store_a, supplier, [(product, 10, 10)], status=PurchaseOrderStatus.SHIPPED)

    with pytest.raises(ValidationError) as exc_info:
        receive_items(repo_a, po.id, [ReceiptLine(item_id=po.items[0].id, received_quantity=1)])

    assert exc_info.value.details[0]["reason"] == "Item already fully received"


def test_other_store_purchase_order_is_not_found(db, store_b, repo_a):
    supplier_b = make_supplier(db, store_b)
    product_b = make_product(db, store_b)
    po = make_purchase_order(db, store_b, supplier_b, [(product_b, 10)])

    with pytest.raises(NotFoundError):
        receive_items(repo_a, po.id, [ReceiptLine(item_id=po.items[0].id, received_quantity=10)])

    db.refresh(product_b)
    assert product_b.stock_quantity == 0


def test_missing_order_is_not_found_even_with_zero_lines(db, store_b, repo_a):
    supplier_b = make_supplier(db, store_b)
    product_b = make_product(db, store_b)
    po = make_purchase_order(db, store_b, supplier_b, [(product_b, 10)])
    item_id = po.items[0].id

    for purchase_order_id in (po.id, 9999):
        with pytest.raises(NotFoundError):
            receive_items(repo_a, purchase_order_id, [ReceiptLine(item_id=item_id, received_quantity=0)])


def test_delivery_refreshes_supplier_performance(db, store_a, repo_a, supplier):
    product = make_product(db, store_a)
    po = make_purchase_order(
        db, store_a, supplier, [(product, 10)],
        expected_delivery=utc_today() + timedelta(days=3),
    )

    receive_items(repo_a, po.id, [ReceiptLine(item_id=po.items[0].id, received_quantity=10)])

    db.refresh(supplier)
    assert supplier.total_orders == 1
    assert supplier.on_time_delivery_rate == 100
    assert supplier.performance_rating == 5


def test_receipt_records_the_receiving_user(db, store_a, repo_a, admin_a, supplier):
    product = make_product(db, store_a)
    po = make_purchase_order(db, store_a, supplier, [(product, 10)])

    receive_items(repo_a, po.id, [ReceiptLine(item_id=po.items[0].id, received_quantity=2, notes="Box 1")])

    db.refresh(po)
    assert po.receipts[0].received_by == admin_a.id
    assert po.receipts[0].notes == "Box 1"
    assert restock_logs(db, product)[0].notes.endswith(": Box 1")
