"""Authentication endpoints of the rental backend."""


def login(client, username, password):
    """POST /auth/login; returns ``(token, user)``."""
    body = client.post('/auth/login', json={'username': username, 'password': password})
    # some backend builds wrap the payload in ``data``
    payload = body.get('data') if isinstance(body.get('data'), dict) else body
    return payload.get('token'), payload.get('user')


def logout(client):
    client.post('/auth/logout', json={})


def me(client):
    body = client.get('/auth/me')
    if isinstance(body.get('data'), dict):
        return body['data']
    return body
