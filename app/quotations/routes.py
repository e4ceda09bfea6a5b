# app/quotations/routes.py

import io
import logging

from flask import Blueprint, current_app, jsonify, request, send_file, url_for

from app.api import catalog
from app.api import quotations as quotations_api
from app.auth.guard import backend, current_session, require_login
from app.equipment.utils import list_response, query_filters
from app.errors import BackendError, UnauthorizedError
from app.quotations.model import QuotationDraft
from app.quotations.schemas import (
    AddGroupInput,
    AddItemInput,
    AddSectionInput,
    RatesInput,
    SelectInput,
)
from app.quotations.status import available_transitions, ensure_transition
from app.quotations.utils import catalog_index

bp = Blueprint('quotations', __name__)
bp.before_request(require_login)

LIST_QUERY = ('page', 'limit', 'search', 'status', 'clientName',
              'startDate', 'endDate', 'sort', 'order')


def _drafts():
    return current_app.extensions['drafts']


def _user_id():
    return (current_session().user or {}).get('id')


def _editing(key):
    """The user's draft, locked for one editor action."""
    return _drafts().checkout(_user_id(), key)


def _catalog() -> dict:
    """Equipment cache used to prefill items; a failed fetch leaves it empty."""
    try:
        rows = catalog.fetch_equipment_cache(backend(), limit=current_app.config['CATALOG_PAGE_LIMIT'])
    except UnauthorizedError:
        raise
    except BackendError as e:
        logging.warning("equipment cache unavailable: %s", e.message)
        return {}
    return catalog_index(rows)


def _state(key, draft: QuotationDraft, status=200):
    return jsonify(draftKey=key, **draft.to_state()), status


@bp.route('/', methods=['GET'])
def list_quotations():
    filters = query_filters(request.args, LIST_QUERY)
    res = list_response(quotations_api.list_quotations(backend(), **filters))
    for row in res['data']:
        row['availableTransitions'] = available_transitions(row.get('status'))
    return jsonify(**res)


@bp.route('/<int:quotation_id>', methods=['GET'])
def view_quotation(quotation_id):
    data = quotations_api.get_quotation(backend(), quotation_id).get('data') or {}
    return jsonify(data=data, availableTransitions=available_transitions(data.get('status')))


@bp.route('/<int:quotation_id>', methods=['DELETE'])
def delete_quotation(quotation_id):
    quotations_api.delete_quotation(backend(), quotation_id)
    return jsonify(success=True, message='Quotation deleted successfully')


@bp.route('/<int:quotation_id>/status', methods=['PUT'])
def change_status(quotation_id):
    """Move a quotation along the status machine; only offered moves are accepted."""
    client = backend()
    target = (request.get_json(silent=True) or {}).get('status')
    current = (quotations_api.get_quotation(client, quotation_id).get('data') or {}).get('status')
    status = ensure_transition(current, target)
    res = quotations_api.update_quotation_status(client, quotation_id, status.value)
    data = res.get('data') or {}
    return jsonify(
        success=True,
        message=f'Quotation status updated to {status.value}',
        data=data,
        availableTransitions=available_transitions(status),
    )


@bp.route('/<int:quotation_id>/export/<fmt>', methods=['GET'])
def export_quotation(quotation_id, fmt):
    if fmt not in quotations_api.EXPORT_FORMATS:
        return jsonify(error=f'Unknown export format: {fmt}'), 404
    ext, mimetype = quotations_api.EXPORT_FORMATS[fmt]
    blob = quotations_api.export_quotation(backend(), quotation_id, fmt)
    return send_file(
        io.BytesIO(blob),
        mimetype=mimetype,
        as_attachment=True,
        download_name=f'quotation-{quotation_id}.{ext}',
    )


# Draft editor

@bp.route('/drafts', methods=['POST'])
def new_draft():
    cfg = current_app.config
    draft = QuotationDraft.new(
        tax=cfg['DEFAULT_TAX_RATE'],
        validity_days=cfg['QUOTATION_VALIDITY_DAYS'],
        catalog=_catalog(),
    )
    key = _drafts().create(_user_id(), draft)
    return _state(key, draft, 201)


@bp.route('/<int:quotation_id>/drafts', methods=['POST'])
def edit_draft(quotation_id):
    data = quotations_api.get_quotation(backend(), quotation_id).get('data') or {}
    draft = QuotationDraft.from_quotation(data, catalog=_catalog())
    key = _drafts().create(_user_id(), draft)
    return _state(key, draft, 201)


@bp.route('/drafts/<key>', methods=['GET'])
def view_draft(key):
    with _editing(key) as draft:
        return _state(key, draft)


@bp.route('/drafts/<key>', methods=['PATCH'])
def update_draft_header(key):
    with _editing(key) as draft:
        draft.update_header(request.get_json(silent=True) or {})
        return _state(key, draft)


@bp.route('/drafts/<key>', methods=['DELETE'])
def discard_draft(key):
    _drafts().discard(_user_id(), key)
    return jsonify(success=True)


@bp.route('/drafts/<key>/rates', methods=['PUT'])
def update_rates(key):
    data = RatesInput.model_validate(request.get_json(silent=True) or {})
    with _editing(key) as draft:
        draft.set_rates(data)
        return _state(key, draft)


@bp.route('/drafts/<key>/select', methods=['POST'])
def select(key):
    """Pick the section/group that new groups and items are added to."""
    data = SelectInput.model_validate(request.get_json(silent=True) or {})
    given = data.model_fields_set
    with _editing(key) as draft:
        if data.group_id is not None:
            draft.select_group(data.group_id)
            return _state(key, draft)
        if 'section_id' in given:
            draft.select_section(data.section_id)
        if 'group_id' in given:
            # explicit null: later items go in as standalone items
            draft.select_group(None)
        return _state(key, draft)


@bp.route('/drafts/<key>/sections', methods=['POST'])
def add_section(key):
    data = AddSectionInput.model_validate(request.get_json(silent=True) or {})
    with _editing(key) as draft:
        draft.add_section(data)
        return _state(key, draft, 201)


@bp.route('/drafts/<key>/sections/<int(signed=True):section_id>', methods=['DELETE'])
def remove_section(key, section_id):
    with _editing(key) as draft:
        draft.remove_section(section_id)
        return _state(key, draft)


@bp.route('/drafts/<key>/groups', methods=['POST'])
def add_group(key):
    data = AddGroupInput.model_validate(request.get_json(silent=True) or {})
    with _editing(key) as draft:
        draft.add_group(data)
        return _state(key, draft, 201)


@bp.route('/drafts/<key>/groups/<int(signed=True):group_id>', methods=['DELETE'])
def remove_group(key, group_id):
    with _editing(key) as draft:
        draft.remove_group(group_id)
        return _state(key, draft)


@bp.route('/drafts/<key>/items', methods=['POST'])
def add_item(key):
    data = AddItemInput.model_validate(request.get_json(silent=True) or {})
    with _editing(key) as draft:
        draft.add_item(data)
        return _state(key, draft, 201)


@bp.route('/drafts/<key>/items/<int(signed=True):item_id>', methods=['DELETE'])
def remove_item(key, item_id):
    with _editing(key) as draft:
        draft.remove_item(item_id)
        return _state(key, draft)


@bp.route('/drafts/<key>/submit', methods=['POST'])
def submit_draft(key):
    """Send the whole tree to the backend.

    The draft stays open on failure so the user can retry; it is closed once
    the backend has accepted it. The draft lock is held across the backend
    call so no edit slips in between serializing and remapping ids.
    """
    client = backend()
    with _editing(key) as draft:
        creating = draft.quotation_id is None
        if creating:
            persist = lambda payload: quotations_api.create_quotation(client, payload)  # noqa: E731
        else:
            qid = draft.quotation_id
            persist = lambda payload: quotations_api.update_quotation(client, qid, payload)  # noqa: E731

        try:
            saved = draft.submit(persist)
        except UnauthorizedError:
            raise
        except BackendError as e:
            logging.warning("quotation submit failed: %s", e.message)
            status = e.status_code if e.status_code and 400 <= e.status_code < 500 else 502
            return jsonify(
                error='Failed to create quotation' if creating else 'Failed to update quotation',
                detail=e.message,
                errors=e.errors,
            ), status

        _drafts().discard(_user_id(), key)
        return jsonify(
            success=True,
            message='Quotation created successfully' if creating else 'Quotation updated successfully',
            redirect=url_for('quotations.list_quotations'),
            data=saved,
            **draft.to_state(),
        )
