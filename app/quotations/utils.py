# app/quotations/utils.py

"""Helpers for the quotation editor."""

import random
from datetime import date, timedelta


def generate_quotation_number(today: date | None = None, rng=random) -> str:
    """Client-side quotation number: ``Q-YYYYMMDD-NNNN``.

    The suffix is random, so two drafts opened on the same day can collide;
    the backend rejects duplicates on submit.
    """
    today = today or date.today()
    return f"Q-{today:%Y%m%d}-{rng.randint(0, 9999):04d}"


def new_quotation_defaults(today: date | None = None, tax: float = 11,
                           validity_days: int = 30) -> dict:
    """Header values for a fresh draft in create mode."""
    today = today or date.today()
    return {
        'quotation_number': generate_quotation_number(today),
        'issue_date': today,
        'valid_until': today + timedelta(days=validity_days),
        'status': 'draft',
        'tax': tax,
        'discount': 0,
    }


def catalog_index(equipment: list) -> dict:
    """Index a catalog page by equipment id for prefill lookups."""
    out = {}
    for e in equipment or []:
        if e.get('id') is None:
            continue
        out[int(e['id'])] = {
            'id': int(e['id']),
            'name': e.get('name') or '',
            'dailyRentalPrice': float(e.get('dailyRentalPrice') or 0.0),
        }
    return out
