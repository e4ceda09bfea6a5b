import logging
from pathlib import Path

import click
from flask import current_app
from flask.cli import with_appcontext

from app.api import quotations as quotations_api
from app.backend_client import BackendClient
from app.errors import BackendError


@click.group("quotations")
def quotations_cli() -> None:
    """Quotation commands."""


@quotations_cli.command("export")
@click.argument("quotation_id", type=int)
@click.option("--format", "fmt", type=click.Choice(sorted(quotations_api.EXPORT_FORMATS)), default="pdf")
@click.option("--out", "out_dir", default=None, help="Directory to write to (default EXPORT_DIR)")
@click.option("--token", envvar="BACKEND_API_TOKEN", required=True, help="Bearer token for the backend")
@with_appcontext
def export_command(quotation_id: int, fmt: str, out_dir: str | None, token: str) -> None:
    try:
        path = export_quotation(quotation_id, fmt, token, out_dir)
    except BackendError as e:
        raise click.ClickException(e.message)
    click.echo(str(path))


def export_quotation(quotation_id: int, fmt: str, token: str, out_dir: str | None = None) -> Path:
    """Download a quotation export and write it as ``quotation-<id>.<ext>``."""
    cfg = current_app.config
    client = BackendClient(cfg["BACKEND_API_URL"], token=token, timeout=cfg["BACKEND_TIMEOUT"])
    try:
        blob = quotations_api.export_quotation(client, quotation_id, fmt)
    finally:
        client.session.close()
    ext, _ = quotations_api.EXPORT_FORMATS[fmt]
    out = Path(out_dir or cfg["EXPORT_DIR"]) / f"quotation-{quotation_id}.{ext}"
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_bytes(blob)
    logging.info("exported quotation %s to %s (%d bytes)", quotation_id, out, len(blob))
    return out
