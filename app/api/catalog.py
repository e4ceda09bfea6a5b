"""Equipment, category and bundle resources of the rental backend.

All functions take a :class:`app.backend_client.BackendClient` and return the
backend envelope (``data`` plus ``meta`` for lists) unchanged.
"""

from typing import Dict, List

EQUIPMENT_FILTERS = ('page', 'limit', 'search', 'sort', 'order',
                     'categoryId', 'minPrice', 'maxPrice')
LIST_FILTERS = ('page', 'limit', 'search')


def _params(filters: dict, keys) -> dict:
    """Drop empty filters so the backend applies its own defaults."""
    out = {k: filters[k] for k in keys if filters.get(k)}
    if filters.get('isActive') is not None:
        out['isActive'] = str(filters['isActive']).lower()
    return out


# Equipment

def list_equipment(client, **filters) -> Dict:
    return client.get('/equipment', params=_params(filters, EQUIPMENT_FILTERS))


def get_equipment(client, equipment_id) -> Dict:
    return client.get(f'/equipment/{equipment_id}')


def list_equipment_by_category(client, category_id, **filters) -> Dict:
    params = {k: filters[k] for k in ('page', 'limit', 'search', 'sort', 'order') if filters.get(k)}
    return client.get(f'/equipment/category/{category_id}', params=params)


def create_equipment(client, payload: dict) -> Dict:
    return client.post('/equipment', json=payload)


def update_equipment(client, equipment_id, payload: dict) -> Dict:
    return client.put(f'/equipment/{equipment_id}', json=payload)


def delete_equipment(client, equipment_id) -> Dict:
    return client.delete(f'/equipment/{equipment_id}')


def fetch_equipment_cache(client, limit: int = 100) -> List[Dict]:
    """Whole catalog used to prefill quotation and bundle items.

    ``limit`` is the page size; pages are read until ``meta.totalPages``.
    """
    rows = []
    for _, page in client.paginate('/equipment', limit=limit):
        rows.extend(page)
    return rows


# Categories

def list_categories(client, **filters) -> Dict:
    return client.get('/equipment/categories', params=_params(filters, LIST_FILTERS))


def get_category(client, category_id) -> Dict:
    return client.get(f'/equipment/categories/{category_id}')


def create_category(client, payload: dict) -> Dict:
    return client.post('/equipment/categories', json=payload)


def update_category(client, category_id, payload: dict) -> Dict:
    return client.put(f'/equipment/categories/{category_id}', json=payload)


def delete_category(client, category_id) -> Dict:
    return client.delete(f'/equipment/categories/{category_id}')


# Bundles

def list_bundles(client, **filters) -> Dict:
    return client.get('/bundles', params=_params(filters, LIST_FILTERS))


def get_bundle(client, bundle_id) -> Dict:
    return client.get(f'/bundles/{bundle_id}')


def create_bundle(client, payload: dict) -> Dict:
    return client.post('/bundles', json=payload)


def update_bundle(client, bundle_id, payload: dict) -> Dict:
    return client.put(f'/bundles/{bundle_id}', json=payload)


def delete_bundle(client, bundle_id) -> Dict:
    return client.delete(f'/bundles/{bundle_id}')
