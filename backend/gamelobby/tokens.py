import time
from typing import Optional

import jwt
from flask import current_app

ALGORITHM = 'HS256'


def issue_token(username: str) -> str:
    """Sign a bearer token for ``username`` that expires after TOKEN_TTL_SEC."""
    now = int(time.time())
    ttl = int(current_app.config.get('TOKEN_TTL_SEC', 3600))
    claims = {'sub': username, 'username': username, 'iat': now, 'exp': now + ttl}
    return jwt.encode(claims, current_app.config['JWT_SECRET'], algorithm=ALGORITHM)


def read_token(token: str) -> Optional[str]:
    """Return the username inside a valid token, or None."""
    try:
        claims = jwt.decode(token, current_app.config['JWT_SECRET'], algorithms=[ALGORITHM])
    except jwt.InvalidTokenError:
        return None
    username = claims.get('username')
    return username if isinstance(username, str) and username else None


def bearer_token(header: Optional[str]) -> Optional[str]:
    if not header:
        return None
    scheme, _, value = header.partition(' ')
    if scheme.lower() != 'bearer' or not value.strip():
        return None
    return value.strip()
