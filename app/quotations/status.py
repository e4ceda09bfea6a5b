# app/quotations/status.py
"""Quotation status machine.

Transitions are only ever triggered by an explicit user action; the editor
never changes status on its own. Only forward moves are offered.
"""

from enum import Enum

from app.errors import QuotationError


class QuotationStatus(str, Enum):
    DRAFT = 'draft'
    SENT = 'sent'
    APPROVED = 'approved'
    REJECTED = 'rejected'
    CONVERTED_TO_DO = 'converted_to_do'
    CONVERTED_TO_INVOICE = 'converted_to_invoice'


TRANSITIONS = {
    QuotationStatus.DRAFT: (QuotationStatus.SENT,),
    QuotationStatus.SENT: (QuotationStatus.APPROVED, QuotationStatus.REJECTED),
    QuotationStatus.APPROVED: (
        QuotationStatus.REJECTED,
        QuotationStatus.CONVERTED_TO_DO,
        QuotationStatus.CONVERTED_TO_INVOICE,
    ),
    QuotationStatus.REJECTED: (),
    QuotationStatus.CONVERTED_TO_DO: (),
    QuotationStatus.CONVERTED_TO_INVOICE: (),
}

TERMINAL = frozenset(s for s, nxt in TRANSITIONS.items() if not nxt)


def available_transitions(status) -> list:
    """Next states offered for ``status`` (an enum member or its value)."""
    try:
        current = QuotationStatus(status)
    except ValueError:
        return []
    return [s.value for s in TRANSITIONS[current]]


def ensure_transition(current, target) -> QuotationStatus:
    try:
        target = QuotationStatus(target)
    except ValueError:
        raise QuotationError(f'Unknown status: {target}')
    if target.value not in available_transitions(current):
        raise QuotationError(
            f'Cannot change status from {getattr(current, "value", current)} to {target.value}'
        )
    return target
