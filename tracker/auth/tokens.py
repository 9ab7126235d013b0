"""
Signed, time-bounded bearer tokens.

Tokens are HS256 JWTs carrying the username as ``sub`` and an absolute
expiry as ``exp``. The payload is signed, not encrypted: nothing beyond the
username should ever be placed in it.
"""

from typing import Optional, NamedTuple
from datetime import datetime, timedelta

import jwt
from pytz import UTC
from flask import Flask, current_app, g

from .exceptions import InvalidToken, ConfigurationError

ALGORITHM = 'HS256'
MIN_KEY_LENGTH = 32
"""HS256 keys must be at least 256 bits long."""

BEARER_PREFIX = 'Bearer '


class Claims(NamedTuple):
    """The verified contents of a bearer token."""

    subject: str
    expires: datetime
    """
    Issue time truncated to whole seconds, plus the lifetime. Equals
    ``now + ttl`` only when ``now`` has no sub-second part.
    """
    issued: Optional[datetime] = None
    """Issue time, truncated to whole seconds."""


def signing_key(secret: str) -> bytes:
    """
    Derive the HMAC key from the configured secret.

    Secrets shorter than :const:`MIN_KEY_LENGTH` bytes are zero-extended. This
    keeps short development secrets usable but adds no entropy.
    """
    key = secret.encode('utf-8')
    if len(key) < MIN_KEY_LENGTH:
        key = key.ljust(MIN_KEY_LENGTH, b'\x00')
    return key


def extract_bearer(header: Optional[str]) -> Optional[str]:
    """
    Get the token from an ``Authorization`` header value.

    The header must start with exactly ``Bearer `` (case-sensitive, single
    space). Anything else, including a blank token, yields ``None``.
    """
    if not header or not header.startswith(BEARER_PREFIX):
        return None
    token = header[len(BEARER_PREFIX):].strip()
    return token or None


class TokenCodec(object):
    """
    Issues and verifies bearer tokens.

    The signing key and default lifetime are fixed at construction.
    """

    def __init__(self, secret: str, expiration: int = 86400) -> None:
        """
        Set the signing secret and the default token lifetime.

        Parameters
        ----------
        secret : str
        expiration : int
            Default token lifetime, in seconds.

        """
        if not secret:
            raise ConfigurationError('JWT_SECRET is not set')
        self._key = signing_key(secret)
        self._expiration = timedelta(seconds=int(expiration))

    @property
    def expiration(self) -> timedelta:
        """Default lifetime of newly issued tokens."""
        return self._expiration

    def issue(self, subject: str, now: Optional[datetime] = None,
              ttl: Optional[timedelta] = None) -> str:
        """
        Create a signed token for ``subject`` that expires at ``now + ttl``.

        Parameters
        ----------
        subject : str
            Username of the authenticated user.
        now : :class:`datetime`
            Issue time; defaults to the current time. Truncated to whole
            seconds, which is the resolution of JWT timestamps.
            The expiry is computed from the truncated time, so it is
            ``now + ttl`` only when ``now`` has no sub-second part.
        ttl : :class:`timedelta`
            Defaults to :attr:`expiration`.

        Returns
        -------
        str

        """
        if now is None:
            now = datetime.now(tz=UTC)
        elif now.tzinfo is None:
            now = UTC.localize(now)
        if ttl is None:
            ttl = self._expiration
        now = now.replace(microsecond=0)
        expires = now + ttl
        payload = {
            'sub': subject,
            'iat': int(now.timestamp()),
            'exp': int(expires.timestamp())
        }
        return jwt.encode(payload, self._key, algorithm=ALGORITHM)

    def parse(self, token: str) -> Claims:
        """
        Verify a token and get its claims.

        Raises
        ------
        :class:`InvalidToken`
            If the signature does not match, the token is malformed, or it
            has expired.

        """
        if not token:
            raise InvalidToken('No token provided')
        try:
            data = jwt.decode(token, self._key, algorithms=[ALGORITHM],
                              options={'require': ['sub', 'exp']})
        except jwt.exceptions.ExpiredSignatureError as e:
            raise InvalidToken('Token has expired') from e
        except jwt.exceptions.InvalidTokenError as e:
            raise InvalidToken('Not a valid token') from e

        subject = data['sub']
        if not isinstance(subject, str) or not subject:
            raise InvalidToken('Token has no subject')
        issued = None
        if 'iat' in data:
            issued = datetime.fromtimestamp(data['iat'], tz=UTC)
        return Claims(subject=subject,
                      expires=datetime.fromtimestamp(data['exp'], tz=UTC),
                      issued=issued)

    def is_valid(self, token: str) -> bool:
        """Determine whether ``token`` would be accepted by :meth:`parse`."""
        try:
            self.parse(token)
        except InvalidToken:
            return False
        return True


def init_app(app: Flask) -> None:
    """Set default configuration parameters for an application instance."""
    app.config.setdefault('JWT_SECRET', 'foosecret')
    app.config.setdefault('JWT_EXPIRATION', 86400)


def get_codec(app: Optional[Flask] = None) -> TokenCodec:
    """Create a :class:`.TokenCodec` from application config."""
    config = (app or current_app).config
    return TokenCodec(config.get('JWT_SECRET'),
                      int(config.get('JWT_EXPIRATION', 86400)))


def current_codec() -> TokenCodec:
    """Get/create the :class:`.TokenCodec` for this context."""
    if 'token_codec' not in g:
        g.token_codec = get_codec()
    return g.token_codec    # type: ignore
