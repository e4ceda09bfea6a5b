# app/bundles/routes.py

from flask import Blueprint, current_app, jsonify, request

from app.api import catalog
from app.auth.guard import backend, require_login
from app.bundles.utils import (
    BundleInput,
    BundlePriceInput,
    bundle_payload,
    bundle_summary,
    discounted_price,
    items_total,
    merge_items,
)
from app.equipment.utils import list_response, query_filters
from app.quotations.utils import catalog_index

bp = Blueprint('bundles', __name__)
bp.before_request(require_login)


def _catalog() -> dict:
    limit = current_app.config['CATALOG_PAGE_LIMIT']
    return catalog_index(catalog.fetch_equipment_cache(backend(), limit=limit))


@bp.route('/', methods=['GET'])
def list_bundles():
    filters = query_filters(request.args, ('page', 'limit', 'search'))
    return jsonify(**list_response(catalog.list_bundles(backend(), **filters)))


@bp.route('/<int:bundle_id>', methods=['GET'])
def view_bundle(bundle_id):
    bundle = catalog.get_bundle(backend(), bundle_id).get('data') or {}
    return jsonify(data=bundle, **bundle_summary(bundle))


@bp.route('/price', methods=['POST'])
def price_bundle():
    """Live price while the bundle form is being filled in."""
    data = BundlePriceInput.model_validate(request.get_json(silent=True) or {})
    items = merge_items(data.bundle_items)
    total = items_total(items, _catalog())
    return jsonify(
        bundleItems=items,
        calculatedPrice=total,
        dailyRentalPrice=discounted_price(total, data.discount),
    )


@bp.route('/', methods=['POST'])
def create_bundle():
    data = BundleInput.model_validate(request.get_json(silent=True) or {})
    payload = bundle_payload(data, _catalog)
    res = catalog.create_bundle(backend(), payload)
    return jsonify(success=True, message='Bundle created successfully', data=res.get('data')), 201


@bp.route('/<int:bundle_id>', methods=['PUT'])
def update_bundle(bundle_id):
    data = BundleInput.model_validate(request.get_json(silent=True) or {})
    payload = bundle_payload(data, _catalog)
    res = catalog.update_bundle(backend(), bundle_id, payload)
    return jsonify(success=True, message='Bundle updated successfully', data=res.get('data'))


@bp.route('/<int:bundle_id>', methods=['DELETE'])
def delete_bundle(bundle_id):
    catalog.delete_bundle(backend(), bundle_id)
    return jsonify(success=True, message='Bundle deleted successfully')
