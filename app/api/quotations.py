"""Quotation resources of the rental backend."""

from typing import Dict

QUOTATION_FILTERS = ('page', 'limit', 'search', 'status', 'clientName',
                     'startDate', 'endDate', 'sort', 'order')

EXPORT_FORMATS = {
    'pdf': ('pdf', 'application/pdf'),
    'excel': ('xlsx', 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'),
}


def list_quotations(client, **filters) -> Dict:
    params = {k: filters[k] for k in QUOTATION_FILTERS if filters.get(k)}
    return client.get('/quotations', params=params)


def get_quotation(client, quotation_id) -> Dict:
    return client.get(f'/quotations/{quotation_id}')


def create_quotation(client, payload: dict) -> Dict:
    return client.post('/quotations', json=payload)


def update_quotation(client, quotation_id, payload: dict) -> Dict:
    return client.put(f'/quotations/{quotation_id}', json=payload)


def update_quotation_status(client, quotation_id, status: str) -> Dict:
    return client.put(f'/quotations/{quotation_id}/status', json={'status': status})


def delete_quotation(client, quotation_id) -> Dict:
    return client.delete(f'/quotations/{quotation_id}')


def export_quotation(client, quotation_id, fmt: str = 'pdf') -> bytes:
    """Download the PDF or Excel rendering; the blob is passed through untouched."""
    if fmt not in EXPORT_FORMATS:
        raise ValueError(f'Unknown export format: {fmt}')
    return client.download(f'/quotations/{quotation_id}/export/{fmt}')
