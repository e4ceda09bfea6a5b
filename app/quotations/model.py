# app/quotations/model.py
"""In-memory quotation editor.

A draft holds sections -> groups -> items, plus standalone items that belong
to no group. Derived figures (line totals, group totals, section subtotals
and the document totals) are never edited directly: ``recompute`` rebuilds
all of them from the inputs and runs after every mutation.

Section subtotals count group totals only. A standalone item counts toward
the document subtotal but toward no section.
"""

import datetime
import itertools
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from app.errors import QuotationError
from app.quotations.schemas import (
    AddGroupInput,
    AddItemInput,
    AddSectionInput,
    QuotationHeaderInput,
    RatesInput,
)
from app.quotations.utils import new_quotation_defaults


class HandleAllocator:
    """Local ids for entities the backend has not assigned ids to yet.

    Handles are negative, so they never clash with server ids, and they are
    never reused within one draft.
    """

    def __init__(self) -> None:
        self._counter = itertools.count(1)

    def allocate(self) -> int:
        return -next(self._counter)

    @staticmethod
    def is_local(entity_id) -> bool:
        return entity_id is not None and entity_id < 0


@dataclass
class Section:
    id: int
    name: str
    date: datetime.date
    description: Optional[str] = None
    subtotal: float = 0.0


@dataclass
class Group:
    id: int
    section_id: int
    name: str
    description: Optional[str] = None
    total: float = 0.0


@dataclass
class Item:
    id: int
    item_name: str
    quantity: int
    price_per_day: float
    days: int
    unit: str = 'Set'
    type: str = 'rental'
    description: Optional[str] = None
    remarks: Optional[str] = None
    equipment_id: Optional[int] = None
    group_id: Optional[int] = None
    total: float = 0.0

    def line_total(self) -> float:
        return self.price_per_day * self.quantity * self.days


@dataclass(frozen=True)
class Totals:
    subtotal: float = 0.0
    tax_amount: float = 0.0
    discount_amount: float = 0.0
    total: float = 0.0


class QuotationDraft:
    def __init__(
        self,
        header: QuotationHeaderInput,
        tax: float = 0.0,
        discount: float = 0.0,
        catalog: Optional[Dict[int, dict]] = None,
        quotation_id: Optional[int] = None,
    ) -> None:
        self.header = header
        self.quotation_id = quotation_id
        self.tax = float(tax)
        self.discount = float(discount)
        self.catalog = catalog or {}
        self.sections: List[Section] = []
        self.groups: List[Group] = []
        self.items: List[Item] = []
        self.active_section_id: Optional[int] = None
        self.active_group_id: Optional[int] = None
        self.handles = HandleAllocator()
        self.totals = Totals()

    @classmethod
    def new(cls, today=None, tax: float = 11, validity_days: int = 30, catalog=None):
        """Blank draft for create mode, pre-filled with the default header."""
        defaults = new_quotation_defaults(today, tax=tax, validity_days=validity_days)
        tax = defaults.pop('tax')
        discount = defaults.pop('discount')
        return cls(QuotationHeaderInput(**defaults), tax=tax, discount=discount, catalog=catalog)

    @classmethod
    def from_quotation(cls, data: dict, catalog=None):
        """Load a quotation from the backend for edit mode.

        Accepts groups and items nested under sections as well as a flat
        ``items`` list carrying ``groupId``. Items pointing at an unknown
        group are kept as standalone items.
        """
        header_data = {k: v for k, v in data.items() if v is not None}
        for key in ('issueDate', 'validUntil'):
            if key in header_data:
                header_data[key] = _day(header_data[key])
        header = QuotationHeaderInput.model_validate(header_data)
        draft = cls(
            header,
            tax=data.get('tax') or 0,
            discount=data.get('discount') or 0,
            catalog=catalog,
            quotation_id=data.get('id'),
        )
        seen_items = set()
        for s in data.get('sections') or []:
            section = Section(
                id=s.get('id') or draft.handles.allocate(),
                name=s.get('name') or '',
                date=_day(s.get('date')),
                description=s.get('description'),
            )
            draft.sections.append(section)
            for g in s.get('groups') or []:
                group = Group(
                    id=g.get('id') or draft.handles.allocate(),
                    section_id=section.id,
                    name=g.get('name') or '',
                    description=g.get('description'),
                )
                draft.groups.append(group)
                for it in g.get('items') or []:
                    item = draft._item_from_data(it, group.id)
                    seen_items.add(item.id)
                    draft.items.append(item)
        group_ids = {g.id for g in draft.groups}
        for it in data.get('items') or []:
            if it.get('id') in seen_items:
                continue
            group_id = it.get('groupId') if it.get('groupId') in group_ids else None
            draft.items.append(draft._item_from_data(it, group_id))
        draft.recompute()
        return draft

    def _item_from_data(self, it: dict, group_id) -> Item:
        return Item(
            id=it.get('id') or self.handles.allocate(),
            item_name=it.get('itemName') or '',
            description=it.get('description'),
            quantity=int(it.get('quantity') or 1),
            unit=it.get('unit') or 'Set',
            price_per_day=float(it.get('pricePerDay') or 0.0),
            days=int(it.get('days') or 1),
            type=it.get('type') or 'rental',
            remarks=it.get('remarks'),
            equipment_id=it.get('equipmentId'),
            group_id=group_id,
        )

    # Selection

    def select_section(self, section_id: Optional[int]) -> None:
        if section_id is None:
            self.active_section_id = None
            self.active_group_id = None
            return
        _find(self.sections, section_id, 'Section')
        self.active_section_id = section_id
        active = self._group(self.active_group_id)
        if active is not None and active.section_id != section_id:
            self.active_group_id = None

    def select_group(self, group_id: Optional[int]) -> None:
        if group_id is None:
            self.active_group_id = None
            return
        group = _find(self.groups, group_id, 'Group')
        self.active_group_id = group.id
        self.active_section_id = group.section_id

    def _group(self, group_id) -> Optional[Group]:
        return next((g for g in self.groups if g.id == group_id), None)

    # Mutations

    def add_section(self, data: AddSectionInput) -> Section:
        section = Section(
            id=self.handles.allocate(),
            name=data.name,
            date=data.date,
            description=data.description,
        )
        self.sections.append(section)
        self.active_section_id = section.id
        self.active_group_id = None
        self.recompute()
        return section

    def remove_section(self, section_id: int) -> None:
        _find(self.sections, section_id, 'Section')
        group_ids = {g.id for g in self.groups if g.section_id == section_id}
        self.items = [i for i in self.items if i.group_id not in group_ids]
        self.groups = [g for g in self.groups if g.section_id != section_id]
        self.sections = [s for s in self.sections if s.id != section_id]
        if self.active_section_id == section_id:
            self.active_section_id = None
        if self.active_group_id in group_ids:
            self.active_group_id = None
        self.recompute()

    def add_group(self, data: AddGroupInput) -> Group:
        if self.active_section_id is None:
            raise QuotationError('Please select a section first')
        group = Group(
            id=self.handles.allocate(),
            section_id=self.active_section_id,
            name=data.name,
            description=data.description,
        )
        self.groups.append(group)
        self.active_group_id = group.id
        self.recompute()
        return group

    def remove_group(self, group_id: int) -> None:
        _find(self.groups, group_id, 'Group')
        self.items = [i for i in self.items if i.group_id != group_id]
        self.groups = [g for g in self.groups if g.id != group_id]
        if self.active_group_id == group_id:
            self.active_group_id = None
        self.recompute()

    def add_item(self, data: AddItemInput) -> Item:
        """Append an item to the active group, or as a standalone item.

        Catalog values only fill fields the caller left empty. There is no
        live link to the equipment afterwards.
        """
        equipment = self.catalog.get(data.equipment_id) if data.equipment_id is not None else None
        name = data.item_name or (equipment['name'] if equipment else '')
        if not name:
            raise QuotationError('Item name is required')
        if data.price_per_day is not None:
            price = data.price_per_day
        else:
            price = equipment['dailyRentalPrice'] if equipment else 0.0
        item = Item(
            id=self.handles.allocate(),
            item_name=name,
            description=data.description,
            quantity=data.quantity,
            unit=data.unit,
            price_per_day=float(price),
            days=data.days,
            type=data.type.value,
            remarks=data.remarks,
            equipment_id=data.equipment_id,
            group_id=self.active_group_id,
        )
        item.total = item.line_total()
        self.items.append(item)
        self.recompute()
        return item

    def remove_item(self, item_id: int) -> None:
        _find(self.items, item_id, 'Item')
        self.items = [i for i in self.items if i.id != item_id]
        self.recompute()

    def set_rates(self, data: RatesInput) -> Totals:
        self.tax = data.tax
        self.discount = data.discount
        return self.recompute()

    def update_header(self, changes: dict) -> None:
        """Merge camelCase header fields. Status only moves through transitions."""
        merged = self.header.model_dump(by_alias=True)
        merged.update({k: v for k, v in changes.items() if k != 'status'})
        self.header = QuotationHeaderInput.model_validate(merged)

    # Derivation

    def recompute(self) -> Totals:
        for item in self.items:
            item.total = item.line_total()

        group_totals = {g.id: 0.0 for g in self.groups}
        for item in self.items:
            if item.group_id in group_totals:
                group_totals[item.group_id] += item.total
        for group in self.groups:
            group.total = group_totals[group.id]

        section_totals = {s.id: 0.0 for s in self.sections}
        for group in self.groups:
            if group.section_id in section_totals:
                section_totals[group.section_id] += group.total
        for section in self.sections:
            section.subtotal = section_totals[section.id]

        subtotal = sum(i.total for i in self.items)
        tax_amount = subtotal * self.tax / 100
        discount_amount = subtotal * self.discount / 100
        self.totals = Totals(
            subtotal=subtotal,
            tax_amount=tax_amount,
            discount_amount=discount_amount,
            total=subtotal + tax_amount - discount_amount,
        )
        return self.totals

    # Submit

    def submit(self, persist: Callable[[dict], dict]):
        """Validate, serialize and hand the tree to ``persist``.

        ``persist`` errors propagate and leave the draft untouched so the user
        can retry. On success local handles are replaced by server ids.
        """
        if not self.items:
            raise QuotationError('Quotation must have at least one item')
        self.recompute()
        response = persist(self.to_payload())
        saved = (response or {}).get('data')
        if isinstance(saved, dict):
            self.remap_ids(saved)
        return saved

    def remap_ids(self, saved: dict) -> None:
        """Adopt ids from the saved quotation, matched by position."""
        if saved.get('id') is not None:
            self.quotation_id = saved['id']
        remap: Dict[int, int] = {}
        for section, s_data in zip(list(self.sections), saved.get('sections') or []):
            groups = [g for g in self.groups if g.section_id == section.id]
            _adopt(section, s_data, remap)
            for group, g_data in zip(groups, s_data.get('groups') or []):
                items = [i for i in self.items if i.group_id == group.id]
                _adopt(group, g_data, remap)
                for item, i_data in zip(items, g_data.get('items') or []):
                    _adopt(item, i_data, remap)
        standalone = [i for i in self.items if i.group_id is None]
        saved_standalone = [i for i in saved.get('items') or [] if not i.get('groupId')]
        for item, i_data in zip(standalone, saved_standalone):
            _adopt(item, i_data, remap)

        for group in self.groups:
            group.section_id = remap.get(group.section_id, group.section_id)
        for item in self.items:
            item.group_id = remap.get(item.group_id, item.group_id)
        self.active_section_id = remap.get(self.active_section_id, self.active_section_id)
        self.active_group_id = remap.get(self.active_group_id, self.active_group_id)

    # Serialization

    def to_payload(self) -> dict:
        """Shape expected by POST/PUT /quotations. Local handles are not sent."""
        payload = self.header.model_dump(by_alias=True, mode='json', exclude_none=True)
        payload.update({
            'tax': self.tax,
            'discount': self.discount,
            'subtotal': self.totals.subtotal,
            'total': self.totals.total,
            'sections': [self._section_dict(s, wire=True) for s in self.sections],
            'items': [_item_dict(i, wire=True) for i in self.items if i.group_id is None],
        })
        return payload

    def to_state(self) -> dict:
        """Everything the editor screen shows, including derived figures."""
        return {
            'quotationId': self.quotation_id,
            'header': self.header.model_dump(by_alias=True, mode='json'),
            'tax': self.tax,
            'discount': self.discount,
            'sections': [self._section_dict(s) for s in self.sections],
            'items': [_item_dict(i) for i in self.items if i.group_id is None],
            'activeSectionId': self.active_section_id,
            'activeGroupId': self.active_group_id,
            'itemCount': len(self.items),
            'totals': {
                'subtotal': self.totals.subtotal,
                'taxAmount': self.totals.tax_amount,
                'discountAmount': self.totals.discount_amount,
                'total': self.totals.total,
            },
        }

    def _section_dict(self, section: Section, wire: bool = False) -> dict:
        groups = []
        for group in self.groups:
            if group.section_id != section.id:
                continue
            groups.append({
                **_id_field(group.id, wire),
                'name': group.name,
                'description': group.description,
                'total': group.total,
                'items': [_item_dict(i, wire) for i in self.items if i.group_id == group.id],
            })
        return {
            **_id_field(section.id, wire),
            'name': section.name,
            'date': section.date.isoformat() if section.date else None,
            'description': section.description,
            'subtotal': section.subtotal,
            'groups': groups,
        }


def _item_dict(item: Item, wire: bool = False) -> dict:
    out = {
        **_id_field(item.id, wire),
        'itemName': item.item_name,
        'description': item.description,
        'quantity': item.quantity,
        'unit': item.unit,
        'pricePerDay': item.price_per_day,
        'days': item.days,
        'total': item.total,
        'type': item.type,
        'remarks': item.remarks,
        'equipmentId': item.equipment_id,
    }
    if not wire:
        out['groupId'] = item.group_id
    return out


def _id_field(entity_id, wire: bool) -> dict:
    if wire and HandleAllocator.is_local(entity_id):
        return {}
    return {'id': entity_id}


def _adopt(entity, data: dict, remap: Dict[int, int]) -> None:
    new_id = data.get('id')
    if new_id is not None and HandleAllocator.is_local(entity.id):
        remap[entity.id] = new_id
        entity.id = new_id


def _find(collection, entity_id, kind: str):
    for entity in collection:
        if entity.id == entity_id:
            return entity
    raise QuotationError(f'{kind} {entity_id} not found')


def _day(value):
    """Backend dates may arrive as full ISO timestamps; keep the day part."""
    if value is None or isinstance(value, datetime.date):
        return value
    return datetime.date.fromisoformat(str(value)[:10])
