# app/quotations/schemas.py
"""Validated inputs for the quotation editor.

Each editor action takes exactly one of these models. Field names are
snake_case in Python and camelCase on the wire, matching the backend.
"""

import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from app.quotations.status import QuotationStatus


class ItemType(str, Enum):
    RENTAL = 'rental'
    SERVICE = 'service'
    SALE = 'sale'


class InputSchema(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


class AddSectionInput(InputSchema):
    name: str = Field(..., min_length=1)
    date: datetime.date
    description: Optional[str] = None


class AddGroupInput(InputSchema):
    name: str = Field(..., min_length=1)
    description: Optional[str] = None


class AddItemInput(InputSchema):
    """Fields left as ``None`` may be filled from the equipment catalog."""

    equipment_id: Optional[int] = None
    item_name: Optional[str] = None
    description: Optional[str] = None
    quantity: int = Field(default=1, gt=0)
    unit: str = 'Set'
    price_per_day: Optional[float] = Field(default=None, ge=0)
    days: int = Field(default=1, gt=0)
    type: ItemType = ItemType.RENTAL
    remarks: Optional[str] = None


class RatesInput(InputSchema):
    tax: float = Field(default=0, ge=0, le=100)
    discount: float = Field(default=0, ge=0, le=100)


class QuotationHeaderInput(InputSchema):
    quotation_number: str = Field(..., min_length=1)
    client_name: str = ''
    client_email: Optional[str] = None
    client_phone: Optional[str] = None
    client_address: Optional[str] = None
    project_name: Optional[str] = None
    project_description: Optional[str] = None
    issue_date: datetime.date
    valid_until: Optional[datetime.date] = None
    status: QuotationStatus = QuotationStatus.DRAFT
    notes: Optional[str] = None
    terms: Optional[str] = None


class SelectInput(InputSchema):
    """Editor target selection. An explicit ``null`` clears that level."""

    section_id: Optional[int] = None
    group_id: Optional[int] = None
