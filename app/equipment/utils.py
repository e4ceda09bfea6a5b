# app/equipment/utils.py
"""Request helpers shared by the catalog and quotation list screens."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

INT_FILTERS = {'page', 'limit', 'categoryId'}
FLOAT_FILTERS = {'minPrice', 'maxPrice'}


def query_filters(args, keys) -> dict:
    """Pull list filters out of the query string, coercing numeric ones.

    Unparseable numbers are dropped rather than rejected, like an empty
    filter field.
    """
    out = {}
    for key in keys:
        raw = args.get(key)
        if raw in (None, ''):
            continue
        try:
            if key in INT_FILTERS:
                out[key] = int(raw)
            elif key in FLOAT_FILTERS:
                out[key] = float(raw)
            elif key == 'isActive':
                out[key] = raw.lower() in ('1', 'true', 'yes')
            else:
                out[key] = raw
        except ValueError:
            continue
    return out


def list_response(envelope: dict) -> dict:
    """Pass through rows and pagination ``{total, page, limit, totalPages}``."""
    return {
        'data': envelope.get('data') or [],
        'meta': envelope.get('meta') or {},
    }


class CatalogSchema(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


class EquipmentInput(CatalogSchema):
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    daily_rental_price: float = Field(..., ge=0)
    quantity: int = Field(default=1, ge=0)
    category_id: int
    is_active: bool = True


class EquipmentUpdate(CatalogSchema):
    name: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    daily_rental_price: Optional[float] = Field(default=None, ge=0)
    quantity: Optional[int] = Field(default=None, ge=0)
    category_id: Optional[int] = None
    is_active: Optional[bool] = None


class CategoryInput(CatalogSchema):
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    is_active: bool = True


class CategoryUpdate(CatalogSchema):
    name: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    is_active: Optional[bool] = None
