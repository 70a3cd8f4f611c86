"""Inbound shipments from suppliers, their items and the boxes planned for them."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Sequence

from .db import NotFoundError, Querier, _errors

_SHIPMENT_SELECT = """
SELECT
    s.id,
    s.code,
    s.supplier_name,
    s.status,
    s.created_at,
    COUNT(i.id)::int,
    COUNT(i.id) FILTER (WHERE i.status = 'matched')::int,
    COUNT(i.id) FILTER (WHERE i.status = 'unresolved')::int,
    COALESCE(SUM(i.boxes_count), 0)::int,
    COALESCE(SUM(i.total_quantity), 0)::int
FROM inbound_shipments s
LEFT JOIN inbound_shipment_items i ON i.shipment_id = s.id
"""

_SHIPMENT_GROUP = "GROUP BY s.id, s.code, s.supplier_name, s.status, s.created_at\n"

_ITEM_SELECT = """
SELECT
    i.id,
    i.shipment_id,
    i.product_id,
    p.sku,
    i.supplier_article,
    i.product_name,
    i.unit,
    i.total_quantity,
    i.boxes_count,
    i.quantity_per_box,
    i.status,
    i.created_at
FROM inbound_shipment_items i
LEFT JOIN products p ON p.id = i.product_id
"""


@dataclass
class InboundShipment:
    """A delivery from a supplier, with totals over its items."""

    id: int
    code: str
    supplier_name: str
    status: str
    created_at: datetime
    total_items: int = 0
    matched_items: int = 0
    unresolved_items: int = 0
    boxes_count: int = 0
    total_quantity: int = 0


@dataclass
class InboundShipmentItem:
    """One line of a shipment: a supplier article and how it arrives."""

    shipment_id: int
    supplier_article: str
    product_name: str
    unit: str
    total_quantity: int
    boxes_count: int
    quantity_per_box: int
    status: str
    product_id: int | None = None
    product_sku: str | None = None
    id: int = 0
    created_at: datetime | None = None


@dataclass
class InboundShipmentBox:
    """A box planned for a shipment item, and what it became once received."""

    id: int
    shipment_item_id: int
    planned_quantity: int
    status: str
    box_id: int | None = None
    batch_id: int | None = None
    box_code: str | None = None
    batch_code: str | None = None
    box_marker_code: str | None = None
    batch_marker_code: str | None = None


def _item_from_row(row: Sequence[Any]) -> InboundShipmentItem:
    (
        item_id,
        shipment_id,
        product_id,
        product_sku,
        supplier_article,
        product_name,
        unit,
        total_quantity,
        boxes_count,
        quantity_per_box,
        status,
        created_at,
    ) = row
    return InboundShipmentItem(
        id=item_id,
        shipment_id=shipment_id,
        product_id=product_id,
        product_sku=product_sku,
        supplier_article=supplier_article,
        product_name=product_name,
        unit=unit,
        total_quantity=total_quantity,
        boxes_count=boxes_count,
        quantity_per_box=quantity_per_box,
        status=status,
        created_at=created_at,
    )


class InboundShipmentRepository:
    """Reads and writes inbound shipments, their items and planned boxes."""

    def __init__(self, db: Querier) -> None:
        self._db = db

    def create(self, code: str, supplier_name: str) -> InboundShipment:
        """Create a shipment in draft status."""
        sql = """
INSERT INTO inbound_shipments (code, supplier_name, status)
VALUES ($1, $2, 'draft')
RETURNING id, code, supplier_name, status, created_at
"""
        with _errors("create inbound shipment"):
            row = self._db.query_row(sql, code, supplier_name)
            if row is None:
                raise RuntimeError("no row returned")
        return InboundShipment(*row)

    def list(self, limit: int) -> list[InboundShipment]:
        """Shipments with item totals, newest first."""
        sql = _SHIPMENT_SELECT + _SHIPMENT_GROUP + "ORDER BY s.id DESC\nLIMIT $1\n"
        with _errors("list inbound shipments"):
            return [InboundShipment(*row) for row in self._db.query(sql, limit)]

    def get_by_id(self, shipment_id: int) -> InboundShipment:
        sql = _SHIPMENT_SELECT + "WHERE s.id = $1\n" + _SHIPMENT_GROUP
        with _errors("get inbound shipment"):
            row = self._db.query_row(sql, shipment_id)
        if row is None:
            raise NotFoundError()
        return InboundShipment(*row)

    def create_item(self, item: InboundShipmentItem) -> InboundShipmentItem:
        sql = """
INSERT INTO inbound_shipment_items (
    shipment_id,
    product_id,
    supplier_article,
    product_name,
    unit,
    total_quantity,
    boxes_count,
    quantity_per_box,
    status
)
VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9)
RETURNING id, shipment_id, product_id, supplier_article, product_name, unit, total_quantity, boxes_count, quantity_per_box, status, created_at
"""
        with _errors("create inbound shipment item"):
            row = self._db.query_row(
                sql,
                item.shipment_id,
                item.product_id,
                item.supplier_article,
                item.product_name,
                item.unit,
                item.total_quantity,
                item.boxes_count,
                item.quantity_per_box,
                item.status,
            )
            if row is None:
                raise RuntimeError("no row returned")
        item_id, shipment_id, product_id, *rest = row
        return _item_from_row((item_id, shipment_id, product_id, None, *rest))

    def list_items(self, shipment_id: int) -> list[InboundShipmentItem]:
        sql = _ITEM_SELECT + "WHERE i.shipment_id = $1\nORDER BY i.id\n"
        with _errors("list inbound shipment items"):
            return [_item_from_row(row) for row in self._db.query(sql, shipment_id)]

    def get_item_by_id(self, item_id: int) -> InboundShipmentItem:
        sql = _ITEM_SELECT + "WHERE i.id = $1\n"
        with _errors("get inbound shipment item"):
            row = self._db.query_row(sql, item_id)
        if row is None:
            raise NotFoundError()
        return _item_from_row(row)

    def update_item_product(self, item_id: int, product_id: int) -> InboundShipmentItem:
        """Link an item to a product and mark it matched."""
        sql = """
WITH updated AS (
    UPDATE inbound_shipment_items
    SET product_id = $2,
        status = 'matched'
    WHERE id = $1
    RETURNING id, shipment_id, product_id, supplier_article, product_name, unit, total_quantity, boxes_count, quantity_per_box, status, created_at
)
SELECT u.id, u.shipment_id, u.product_id, p.sku, u.supplier_article, u.product_name, u.unit, u.total_quantity, u.boxes_count, u.quantity_per_box, u.status, u.created_at
FROM updated u
LEFT JOIN products p ON p.id = u.product_id
"""
        with _errors("update shipment item product"):
            row = self._db.query_row(sql, item_id, product_id)
        if row is None:
            raise NotFoundError()
        return _item_from_row(row)

    def create_planned_box(self, item_id: int, planned_quantity: int) -> InboundShipmentBox:
        sql = """
INSERT INTO inbound_shipment_boxes (shipment_item_id, planned_quantity, status)
VALUES ($1, $2, 'planned')
RETURNING id, shipment_item_id, box_id, batch_id, planned_quantity, status
"""
        with _errors("create planned shipment box"):
            row = self._db.query_row(sql, item_id, planned_quantity)
            if row is None:
                raise RuntimeError("no row returned")
        box_id_, item_id_, box_id, batch_id, planned, status = row
        return InboundShipmentBox(
            id=box_id_,
            shipment_item_id=item_id_,
            box_id=box_id,
            batch_id=batch_id,
            planned_quantity=planned,
            status=status,
        )

    def list_boxes(self, shipment_id: int) -> list[InboundShipmentBox]:
        """Planned boxes of a shipment with their box, batch and marker codes."""
        sql = """
SELECT
    sb.id,
    sb.shipment_item_id,
    sb.box_id,
    sb.batch_id,
    bx.code,
    bt.code,
    bm.marker_code,
    btm.marker_code,
    sb.planned_quantity,
    sb.status
FROM inbound_shipment_boxes sb
JOIN inbound_shipment_items si ON si.id = sb.shipment_item_id
LEFT JOIN boxes bx ON bx.id = sb.box_id
LEFT JOIN batches bt ON bt.id = sb.batch_id
LEFT JOIN markers bm ON bm.object_type = 'box'::object_type AND bm.object_id = sb.box_id
LEFT JOIN markers btm ON btm.object_type = 'batch'::object_type AND btm.object_id = sb.batch_id
WHERE si.shipment_id = $1
ORDER BY sb.id
"""
        with _errors("list shipment boxes"):
            return [
                InboundShipmentBox(
                    id=row[0],
                    shipment_item_id=row[1],
                    box_id=row[2],
                    batch_id=row[3],
                    box_code=row[4],
                    batch_code=row[5],
                    box_marker_code=row[6],
                    batch_marker_code=row[7],
                    planned_quantity=row[8],
                    status=row[9],
                )
                for row in self._db.query(sql, shipment_id)
            ]

    def assign_box_batch(self, shipment_box_id: int, box_id: int, batch_id: int) -> None:
        """Record the box and batch a planned box became, marking it received."""
        sql = """
UPDATE inbound_shipment_boxes
SET box_id = $2,
    batch_id = $3,
    status = 'received'
WHERE id = $1
"""
        with _errors("assign shipment box batch"):
            affected = self._db.exec(sql, shipment_box_id, box_id, batch_id)
        if affected == 0:
            raise NotFoundError()

    def update_status(self, shipment_id: int, status: str) -> None:
        sql = """
UPDATE inbound_shipments
SET status = $2
WHERE id = $1
"""
        with _errors("update shipment status"):
            affected = self._db.exec(sql, shipment_id, status)
        if affected == 0:
            raise NotFoundError()