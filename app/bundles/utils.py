# app/bundles/utils.py
"""Helpers for bundle pricing and bundle item lists."""

from typing import List, Optional

from pydantic import Field

from app.equipment.utils import CatalogSchema
from app.errors import FormError


class BundleItemInput(CatalogSchema):
    equipment_id: int
    quantity: int = Field(default=1, gt=0)


class BundleInput(CatalogSchema):
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    daily_rental_price: Optional[float] = Field(default=None, ge=0)
    discount: float = Field(default=0, ge=0, le=100)
    is_active: bool = True
    bundle_items: List[BundleItemInput] = Field(default_factory=list)


class BundlePriceInput(CatalogSchema):
    """Live price preview while the bundle form is filled in."""

    discount: float = Field(default=0, ge=0, le=100)
    bundle_items: List[BundleItemInput] = Field(default_factory=list)


def merge_items(items) -> list:
    """Collapse repeated equipment into one line, adding up quantities.

    Order follows the first time each piece of equipment appears.
    """
    merged = {}
    for it in items:
        if it.equipment_id in merged:
            merged[it.equipment_id] += it.quantity
        else:
            merged[it.equipment_id] = it.quantity
    return [{'equipmentId': eid, 'quantity': qty} for eid, qty in merged.items()]


def items_total(items, catalog: dict) -> float:
    """Undiscounted daily price of ``items``; unknown equipment counts as 0."""
    total = 0.0
    for it in items:
        equip = catalog.get(it['equipmentId'])
        if equip:
            total += equip['dailyRentalPrice'] * it['quantity']
    return total


def discounted_price(total: float, discount: float) -> float:
    return total * (1 - discount / 100)


def bundle_payload(data: BundleInput, load_catalog) -> dict:
    """Validated bundle ready for the backend.

    The bundle price falls back to the discounted item total when the caller
    did not set one; only then is ``load_catalog()`` called.
    """
    items = merge_items(data.bundle_items)
    if not items:
        raise FormError('Bundle must have at least one item')
    payload = data.model_dump(by_alias=True, exclude={'bundle_items'})
    if data.daily_rental_price is None:
        payload['dailyRentalPrice'] = discounted_price(items_total(items, load_catalog()), data.discount)
    payload['bundleItems'] = items
    return payload


def bundle_summary(bundle: dict) -> dict:
    """Detail-screen figures: list price of the items and the saving."""
    total = 0.0
    for it in bundle.get('bundleItems') or []:
        equip = it.get('equipment') or {}
        total += float(equip.get('dailyRentalPrice') or 0) * (it.get('quantity') or 0)
    price = float(bundle.get('dailyRentalPrice') or 0)
    savings = total - price if total else 0.0
    return {'totalPrice': total, 'savings': savings}
