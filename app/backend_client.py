import logging
import time
from typing import Any, Dict, Generator, Iterable, Optional, Tuple

import requests

from app.errors import BackendError, UnauthorizedError

DEFAULT_ERROR = 'Backend request failed'


class BackendClient:
    """Thin JSON client for the rental REST backend.

    Every call answers with the backend envelope ``{status, message, data,
    meta?}``. Failed calls are not retried; the user re-triggers the action.
    """

    def __init__(self, base_url: str, token: Optional[str] = None, timeout: int = 10) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update({"Accept": "application/json"})
        if token:
            self.session.headers["Authorization"] = f"Bearer {token}"

    @property
    def token(self) -> Optional[str]:
        header = self.session.headers.get("Authorization", "")
        return header[len("Bearer "):] if header.startswith("Bearer ") else None

    def set_token(self, token: Optional[str]) -> None:
        if token:
            self.session.headers["Authorization"] = f"Bearer {token}"
        else:
            self.session.headers.pop("Authorization", None)

    def request(self, method: str, path: str, **kwargs: Any) -> requests.Response:
        url = f"{self.base_url}{path}"
        start = time.monotonic()
        try:
            r = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            logging.warning("backend %s %s network error: %s", method, path, e)
            raise BackendError(f"Network error: {e}") from e
        latency = (time.monotonic() - start) * 1000
        logging.info("backend %s %s %s %.1fms", method, path, r.status_code, latency)
        if r.status_code >= 400:
            body = _safe_json(r)
            if r.status_code == 401:
                raise UnauthorizedError(body.get("message"), errors=body.get("errors"))
            raise BackendError(
                body.get("message") or DEFAULT_ERROR,
                status_code=r.status_code,
                errors=body.get("errors"),
                remote_message=body.get("message"),
            )
        return r

    def get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        return _safe_json(self.request("GET", path, params=params))

    def post(self, path: str, json: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        return _safe_json(self.request("POST", path, json=json if json is not None else {}))

    def put(self, path: str, json: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        return _safe_json(self.request("PUT", path, json=json if json is not None else {}))

    def delete(self, path: str) -> Dict[str, Any]:
        return _safe_json(self.request("DELETE", path))

    def download(self, path: str) -> bytes:
        """Fetch an opaque binary export (PDF/XLSX)."""
        return self.request("GET", path).content

    def paginate(
        self,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        start_page: int = 1,
        limit: int = 100,
    ) -> Generator[Tuple[int, Iterable[Dict[str, Any]]], None, None]:
        page = start_page
        while True:
            q = dict(params or {})
            q["page"] = page
            q["limit"] = limit
            data = self.get(path, params=q)
            payload = data.get("data") or []
            if not payload:
                break
            yield page, payload
            meta = data.get("meta") or {}
            total_pages = meta.get("totalPages")
            if not total_pages or page >= total_pages:
                break
            page += 1


def _safe_json(resp: requests.Response) -> Dict[str, Any]:
    if not resp.content:
        return {}
    try:
        body = resp.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {"data": body}
