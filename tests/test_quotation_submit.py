import os
import sys
from datetime import date

import pytest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from app.errors import BackendError, QuotationError
from app.quotations.model import QuotationDraft
from app.quotations.schemas import AddGroupInput, AddItemInput, AddSectionInput


def build_draft():
    draft = QuotationDraft.new(today=date(2024, 3, 1), tax=10)
    draft.update_header({'clientName': 'PT Acme', 'projectName': 'Launch'})
    draft.add_section(AddSectionInput(name='Day 1', date=date(2024, 3, 2)))
    draft.add_group(AddGroupInput(name='Sound'))
    draft.add_item(AddItemInput(item_name='Speaker', price_per_day=50, quantity=2, days=2))
    draft.select_group(None)
    draft.add_item(AddItemInput(item_name='Transport', price_per_day=30, type='service'))
    return draft


def test_empty_draft_is_not_sent():
    draft = QuotationDraft.new(today=date(2024, 3, 1))
    calls = []
    with pytest.raises(QuotationError) as exc:
        draft.submit(lambda payload: calls.append(payload))
    assert 'at least one item' in exc.value.message
    assert calls == []


def test_payload_shape():
    draft = build_draft()
    payload = draft.to_payload()
    assert payload['quotationNumber'].startswith('Q-20240301-')
    assert payload['clientName'] == 'PT Acme'
    assert payload['issueDate'] == '2024-03-01'
    assert payload['validUntil'] == '2024-03-31'
    assert payload['status'] == 'draft'
    assert payload['tax'] == 10
    assert payload['subtotal'] == 230
    assert payload['total'] == pytest.approx(253)
    assert 'clientEmail' not in payload

    sec = payload['sections'][0]
    assert 'id' not in sec
    assert sec['date'] == '2024-03-02'
    assert sec['subtotal'] == 200
    grp = sec['groups'][0]
    assert 'id' not in grp
    assert grp['items'][0]['itemName'] == 'Speaker'
    assert grp['items'][0]['total'] == 200
    assert 'id' not in grp['items'][0]
    assert [i['itemName'] for i in payload['items']] == ['Transport']
    assert payload['items'][0]['type'] == 'service'


def test_header_status_only_moves_through_transitions():
    draft = build_draft()
    draft.update_header({'status': 'approved', 'notes': 'Call first'})
    assert draft.header.status.value == 'draft'
    assert draft.header.notes == 'Call first'


def test_failed_submit_keeps_draft_intact():
    draft = build_draft()
    before = draft.to_state()

    def persist(payload):
        raise BackendError('Quotation number already exists', status_code=409)

    with pytest.raises(BackendError):
        draft.submit(persist)
    assert draft.to_state() == before
    assert draft.quotation_id is None


def test_successful_submit_adopts_server_ids():
    draft = build_draft()
    sent = {}

    def persist(payload):
        sent['payload'] = payload
        return {
            'status': 'success',
            'data': {
                'id': 42,
                'sections': [{'id': 7, 'groups': [{'id': 70, 'items': [{'id': 700}]}]}],
                'items': [{'id': 701, 'groupId': None}],
            },
        }

    saved = draft.submit(persist)
    assert saved['id'] == 42
    assert sent['payload']['subtotal'] == 230
    assert draft.quotation_id == 42
    assert draft.sections[0].id == 7
    assert draft.groups[0].id == 70
    assert draft.groups[0].section_id == 7
    grouped, loose = draft.items
    assert grouped.id == 700 and grouped.group_id == 70
    assert loose.id == 701 and loose.group_id is None
    assert draft.active_section_id == 7

    # a second save sends the server ids back
    payload = draft.to_payload()
    assert payload['sections'][0]['id'] == 7
    assert payload['sections'][0]['groups'][0]['items'][0]['id'] == 700


def test_from_quotation_nested():
    data = {
        'id': 5,
        'quotationNumber': 'Q-20240101-0001',
        'clientName': 'PT Acme',
        'issueDate': '2024-01-01T00:00:00.000Z',
        'validUntil': '2024-01-31',
        'status': 'sent',
        'tax': 11,
        'discount': 5,
        'sections': [{
            'id': 1,
            'name': 'Day 1',
            'date': '2024-01-02T00:00:00.000Z',
            'groups': [{
                'id': 10,
                'name': 'Power',
                'items': [{'id': 100, 'itemName': 'Genset', 'quantity': 1,
                           'pricePerDay': 100, 'days': 2, 'groupId': 10}],
            }],
        }],
        'items': [
            {'id': 100, 'itemName': 'Genset', 'quantity': 1, 'pricePerDay': 100,
             'days': 2, 'groupId': 10},
            {'id': 101, 'itemName': 'Crew', 'quantity': 2, 'pricePerDay': 25,
             'days': 1, 'groupId': None, 'type': 'service'},
        ],
    }
    draft = QuotationDraft.from_quotation(data)
    assert draft.quotation_id == 5
    assert draft.header.issue_date == date(2024, 1, 1)
    assert draft.header.status.value == 'sent'
    assert draft.sections[0].date == date(2024, 1, 2)
    assert [i.id for i in draft.items] == [100, 101]
    assert draft.groups[0].total == 200
    assert draft.sections[0].subtotal == 200
    assert draft.totals.subtotal == 250
    assert draft.totals.total == pytest.approx(250 + 27.5 - 12.5)


def test_from_quotation_flat_items_with_unknown_group():
    data = {
        'id': 6,
        'quotationNumber': 'Q-20240101-0002',
        'issueDate': '2024-01-01',
        'sections': [{'id': 1, 'name': 'Day 1', 'date': '2024-01-02',
                      'groups': [{'id': 10, 'name': 'Power'}]}],
        'items': [
            {'id': 200, 'itemName': 'Cable', 'pricePerDay': 5, 'groupId': 10},
            {'id': 201, 'itemName': 'Lost', 'pricePerDay': 3, 'groupId': 99},
        ],
    }
    draft = QuotationDraft.from_quotation(data)
    cable, lost = draft.items
    assert cable.group_id == 10
    assert lost.group_id is None
    assert draft.groups[0].total == 5
    assert draft.totals.subtotal == 8
