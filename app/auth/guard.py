# app/auth/guard.py
"""Session lifecycle and route gating."""

from functools import wraps
from urllib.parse import urlparse

from flask import current_app, g, jsonify, redirect, request, session, url_for

from app.auth.session import AuthSession
from app.backend_client import BackendClient


def make_client(token=None) -> BackendClient:
    cfg = current_app.config
    return BackendClient(cfg['BACKEND_API_URL'], token=token, timeout=cfg['BACKEND_TIMEOUT'])


def open_session():
    """before_app_request: build this request's AuthSession."""
    g.auth = AuthSession(session, make_client())
    g.auth.load()


def close_session(_exc=None):
    """teardown_appcontext: release the HTTP connection pool."""
    auth = g.pop('auth', None)
    if auth is not None:
        auth.client.session.close()


def current_session() -> AuthSession:
    if 'auth' not in g:
        open_session()
    return g.auth


def backend() -> BackendClient:
    return current_session().client


def safe_next(target):
    """Only same-site relative paths are accepted as post-login targets."""
    if not target:
        return None
    parsed = urlparse(target)
    if parsed.scheme or parsed.netloc or not target.startswith('/') or target.startswith('//'):
        return None
    return target


def wants_json() -> bool:
    if request.method != 'GET':
        return True
    if request.headers.get('X-Requested-With') == 'XMLHttpRequest':
        return True
    best = request.accept_mimetypes.best
    return best == 'application/json'


def redirect_to_login(next_path=None, message='Authentication required'):
    url = url_for('auth.login', next=next_path) if next_path else url_for('auth.login')
    if wants_json():
        return jsonify(error=message, login_url=url), 401
    return redirect(url)


def require_login():
    """before_request hook for blueprints that need a logged-in user."""
    if not current_session().is_authenticated:
        path = request.full_path.rstrip('?') if request.query_string else request.path
        return redirect_to_login(path)
    return None


def guest_only(view):
    """The login screen sends authenticated users on to where they were going."""

    @wraps(view)
    def wrapped(*args, **kwargs):
        if current_session().is_authenticated:
            target = safe_next(request.args.get('next')) or current_app.config['DEFAULT_SCREEN']
            return redirect(target)
        return view(*args, **kwargs)

    return wrapped
