# app/auth/routes.py

from flask import Blueprint, current_app, jsonify, request
from pydantic import BaseModel, Field, ValidationError

from app.auth.guard import current_session, guest_only, require_login, safe_next

bp = Blueprint('auth', __name__)


class LoginInput(BaseModel):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


@bp.route('/login', methods=['GET'])
@guest_only
def login():
    """Login screen state; ``next`` is where the user goes afterwards."""
    auth = current_session()
    return jsonify(next=safe_next(request.args.get('next')), **auth.to_dict())


@bp.route('/login', methods=['POST'])
@guest_only
def login_submit():
    data = request.get_json(silent=True) or request.form
    auth = current_session()
    try:
        creds = LoginInput.model_validate(dict(data))
    except ValidationError:
        auth.error = 'Please enter your username and password'
        return jsonify(success=False, **auth.to_dict()), 400

    if not auth.login(creds.username, creds.password):
        return jsonify(success=False, **auth.to_dict()), 401

    target = (
        safe_next(data.get('next'))
        or safe_next(request.args.get('next'))
        or current_app.config['DEFAULT_SCREEN']
    )
    return jsonify(success=True, redirect=target, **auth.to_dict())


@bp.route('/logout', methods=['POST'])
def logout():
    auth = current_session()
    user = auth.user or {}
    auth.logout()
    current_app.extensions['drafts'].discard_user(user.get('id'))
    return jsonify(success=True, **auth.to_dict())


@bp.route('/me')
def me():
    """Current user, re-checked against the backend."""
    auth = current_session()
    if auth.token and not auth.checked:
        auth.initialize()
    blocked = require_login()
    if blocked is not None:
        return blocked
    return jsonify(**auth.to_dict())
