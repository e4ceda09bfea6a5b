# app/auth/session.py
"""Per-request authentication state.

``AuthSession`` wraps the client-side store (the signed Flask session cookie)
holding the bearer token and the last-known user record. Views get it from
``app.auth.guard.current_session()``; nothing reads the store directly.
"""

import logging

from app.api import auth as auth_api
from app.errors import BackendError

TOKEN_KEY = 'token'
USER_KEY = 'user'
VERIFIED_KEY = 'verified'
INVALID_CREDENTIALS = 'Invalid username or password'


class AuthSession:
    def __init__(self, store, client) -> None:
        self.store = store
        self.client = client
        self.user = None
        self.is_loading = False
        self.error = None
        self.checked = False

    @property
    def token(self):
        return self.store.get(TOKEN_KEY)

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None

    def load(self):
        """Restore state from the store at the start of a request.

        A stored token is checked against ``/auth/me`` once per browser
        session; after that the stored user record is trusted until the
        backend answers 401.
        """
        if not self.token:
            return None
        self.client.set_token(self.token)
        if self.store.get(VERIFIED_KEY) and self.store.get(USER_KEY):
            self.user = self.store[USER_KEY]
            return self.user
        return self.initialize()

    def initialize(self):
        """Fetch the profile behind a stored token; any failure logs out."""
        if not self.token:
            return None
        self.is_loading = True
        self.checked = True
        try:
            self.client.set_token(self.token)
            user = auth_api.me(self.client)
            if not user:
                raise BackendError('Empty profile returned by /auth/me')
            self.user = user
            self.store[USER_KEY] = user
            self.store[VERIFIED_KEY] = True
        except BackendError as e:
            logging.warning("stored credentials rejected: %s", e.message)
            self.clear()
        finally:
            self.is_loading = False
        return self.user

    def login(self, username: str, password: str) -> bool:
        """Exchange credentials for a token.

        Failures never raise: they leave the session unauthenticated and put
        a message in ``error`` for the login form.
        """
        self.is_loading = True
        self.error = None
        try:
            token, user = auth_api.login(self.client, username, password)
            if not token or not user:
                raise BackendError(INVALID_CREDENTIALS)
        except BackendError as e:
            logging.warning("login failed for %s: %s", username, e.message)
            self.error = e.remote_message or INVALID_CREDENTIALS
            self.user = None
            return False
        finally:
            self.is_loading = False
        self.store[TOKEN_KEY] = token
        self.store[USER_KEY] = user
        self.store[VERIFIED_KEY] = True
        self.client.set_token(token)
        self.user = user
        logging.info("user %s logged in", user.get('username'))
        return True

    def logout(self) -> None:
        """Best-effort server logout, then always drop local credentials."""
        try:
            if self.token:
                auth_api.logout(self.client)
        except BackendError as e:
            logging.warning("logout call failed: %s", e.message)
        finally:
            self.clear()

    def clear(self) -> None:
        self.store.pop(TOKEN_KEY, None)
        self.store.pop(USER_KEY, None)
        self.store.pop(VERIFIED_KEY, None)
        self.client.set_token(None)
        self.user = None

    def to_dict(self) -> dict:
        return {
            'user': self.user,
            'isAuthenticated': self.is_authenticated,
            'isLoading': self.is_loading,
            'error': self.error,
        }
