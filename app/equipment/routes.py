# app/equipment/routes.py

from flask import Blueprint, jsonify, request

from app.api import catalog
from app.auth.guard import backend, require_login
from app.equipment.utils import (
    CategoryInput,
    CategoryUpdate,
    EquipmentInput,
    EquipmentUpdate,
    list_response,
    query_filters,
)

bp = Blueprint('equipment', __name__)
bp.before_request(require_login)

EQUIPMENT_QUERY = ('page', 'limit', 'search', 'sort', 'order',
                   'categoryId', 'minPrice', 'maxPrice', 'isActive')
CATEGORY_QUERY = ('page', 'limit', 'search')


@bp.route('/', methods=['GET'])
def list_equipment():
    filters = query_filters(request.args, EQUIPMENT_QUERY)
    return jsonify(**list_response(catalog.list_equipment(backend(), **filters)))


@bp.route('/<int:equipment_id>', methods=['GET'])
def view_equipment(equipment_id):
    return jsonify(data=catalog.get_equipment(backend(), equipment_id).get('data'))


@bp.route('/', methods=['POST'])
def create_equipment():
    data = EquipmentInput.model_validate(request.get_json(silent=True) or {})
    res = catalog.create_equipment(backend(), data.model_dump(by_alias=True))
    return jsonify(success=True, message='Equipment created successfully', data=res.get('data')), 201


@bp.route('/<int:equipment_id>', methods=['PUT'])
def update_equipment(equipment_id):
    data = EquipmentUpdate.model_validate(request.get_json(silent=True) or {})
    res = catalog.update_equipment(backend(), equipment_id, data.model_dump(by_alias=True, exclude_none=True))
    return jsonify(success=True, message='Equipment updated successfully', data=res.get('data'))


@bp.route('/<int:equipment_id>', methods=['DELETE'])
def delete_equipment(equipment_id):
    catalog.delete_equipment(backend(), equipment_id)
    return jsonify(success=True, message='Equipment deleted successfully')


@bp.route('/category/<int:category_id>', methods=['GET'])
def equipment_by_category(category_id):
    filters = query_filters(request.args, ('page', 'limit', 'search', 'sort', 'order'))
    res = catalog.list_equipment_by_category(backend(), category_id, **filters)
    return jsonify(**list_response(res))


# Categories

@bp.route('/categories', methods=['GET'])
def list_categories():
    filters = query_filters(request.args, CATEGORY_QUERY)
    return jsonify(**list_response(catalog.list_categories(backend(), **filters)))


@bp.route('/categories/<int:category_id>', methods=['GET'])
def view_category(category_id):
    """Category detail with the first page of its equipment."""
    client = backend()
    category = catalog.get_category(client, category_id).get('data')
    equipment = catalog.list_equipment_by_category(client, category_id, limit=10)
    return jsonify(data=category, equipment=list_response(equipment))


@bp.route('/categories', methods=['POST'])
def create_category():
    data = CategoryInput.model_validate(request.get_json(silent=True) or {})
    res = catalog.create_category(backend(), data.model_dump(by_alias=True))
    return jsonify(success=True, message='Category created successfully', data=res.get('data')), 201


@bp.route('/categories/<int:category_id>', methods=['PUT'])
def update_category(category_id):
    data = CategoryUpdate.model_validate(request.get_json(silent=True) or {})
    res = catalog.update_category(backend(), category_id, data.model_dump(by_alias=True, exclude_none=True))
    return jsonify(success=True, message='Category updated successfully', data=res.get('data'))


@bp.route('/categories/<int:category_id>', methods=['DELETE'])
def delete_category(category_id):
    catalog.delete_category(backend(), category_id)
    return jsonify(success=True, message='Category deleted successfully')
