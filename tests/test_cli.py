import os
import sys

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from app import create_app
from app.api import quotations as quotations_api
from app.errors import BackendError


def test_export_writes_file(monkeypatch, tmp_path):
    app = create_app('testing')
    seen = {}

    def fake_export(client, qid, fmt):
        seen['args'] = (client.token, client.base_url, qid, fmt)
        return b'PK\x03\x04 sheet'

    monkeypatch.setattr(quotations_api, 'export_quotation', fake_export)
    runner = app.test_cli_runner()
    result = runner.invoke(
        args=['quotations', 'export', '5', '--format', 'excel', '--out', str(tmp_path)],
        env={'BACKEND_API_TOKEN': 'tok'},
    )
    assert result.exit_code == 0, result.output
    out = tmp_path / 'quotation-5.xlsx'
    assert out.read_bytes() == b'PK\x03\x04 sheet'
    assert str(out) in result.output
    assert seen['args'] == ('tok', 'http://backend.test/api', 5, 'excel')


def test_export_defaults_to_pdf_in_export_dir(monkeypatch, tmp_path):
    app = create_app('testing')
    app.config['EXPORT_DIR'] = str(tmp_path / 'exports')
    monkeypatch.setattr(quotations_api, 'export_quotation', lambda client, qid, fmt: b'%PDF')
    result = app.test_cli_runner().invoke(args=['quotations', 'export', '7', '--token', 'tok'])
    assert result.exit_code == 0, result.output
    assert (tmp_path / 'exports' / 'quotation-7.pdf').read_bytes() == b'%PDF'


def test_export_reports_backend_error(monkeypatch, tmp_path):
    app = create_app('testing')

    def fake_export(client, qid, fmt):
        raise BackendError('Quotation not found', status_code=404)

    monkeypatch.setattr(quotations_api, 'export_quotation', fake_export)
    result = app.test_cli_runner().invoke(
        args=['quotations', 'export', '99', '--token', 'tok', '--out', str(tmp_path)],
    )
    assert result.exit_code == 1
    assert 'Quotation not found' in result.output
    assert list(tmp_path.iterdir()) == []


def test_export_rejects_unknown_format():
    app = create_app('testing')
    result = app.test_cli_runner().invoke(args=['quotations', 'export', '1', '--format', 'doc', '--token', 'x'])
    assert result.exit_code == 2


def test_export_closes_http_session(monkeypatch, tmp_path):
    app = create_app('testing')
    closed = []
    monkeypatch.setattr('requests.Session.close', lambda self: closed.append(self))

    def fake_export(client, qid, fmt):
        raise BackendError('Quotation not found', status_code=404)

    monkeypatch.setattr(quotations_api, 'export_quotation', fake_export)
    result = app.test_cli_runner().invoke(
        args=['quotations', 'export', '1', '--token', 'tok', '--out', str(tmp_path)],
    )
    assert result.exit_code == 1
    assert len(closed) == 1
