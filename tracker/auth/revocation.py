"""
Registry of bearer tokens that were revoked before their natural expiry.

Each revoked token is stored in Redis under ``auth:blacklist:<token>`` with a
time-to-live equal to the token's remaining lifetime, so the entry disappears
at about the moment the token would have stopped working anyway.
"""

import logging
from typing import Optional
from datetime import datetime
from functools import wraps

import redis
import fakeredis
from redis.cluster import RedisCluster
from pytz import UTC
from flask import Flask, current_app, g

from .exceptions import InvalidToken, RevocationFailed
from .tokens import TokenCodec, get_codec

logger = logging.getLogger(__name__)

KEY_PREFIX = 'auth:blacklist:'
MARKER = '1'

_fake_server: Optional[fakeredis.FakeServer] = None


class RevocationStore(object):
    """
    Tracks revoked tokens in a key-value store with per-key expiry.

    The Redis client is thread safe and connects when a command is executed,
    so this class is mostly a container for configuration.
    """

    def __init__(self, connection: redis.Redis, codec: TokenCodec,
                 fail_closed: bool = False) -> None:
        """
        Wrap a Redis connection.

        Parameters
        ----------
        connection : :class:`redis.Redis`
        codec : :class:`.TokenCodec`
            Used to read the expiry of tokens being revoked.
        fail_closed : bool
            If ``True``, store failures raise :class:`.RevocationFailed` on
            revoke and report every token as revoked on lookup. Otherwise
            failures are logged and ignored.

        """
        self.r = connection
        self._codec = codec
        self._fail_closed = fail_closed

    @staticmethod
    def key(token: str) -> str:
        """Get the store key for ``token``."""
        return f'{KEY_PREFIX}{token}'

    def revoke(self, token: str, now: Optional[datetime] = None) -> None:
        """
        Mark ``token`` as revoked until it expires.

        Blank, invalid and already expired tokens are ignored, as there is
        nothing left to protect against.

        Parameters
        ----------
        token : str
        now : :class:`datetime`
            Defaults to the current time.

        Raises
        ------
        :class:`RevocationFailed`
            If the store is unavailable and the store fails closed.

        """
        if not token or not token.strip():
            return
        try:
            claims = self._codec.parse(token)
        except InvalidToken as e:
            logger.debug('Not revoking token: %s', e)
            return

        if now is None:
            now = datetime.now(tz=UTC)
        ttl_ms = int((claims.expires - now).total_seconds() * 1000)
        if ttl_ms <= 0:
            logger.debug('Token for %s already expired', claims.subject)
            return

        try:
            self.r.set(self.key(token), MARKER, px=ttl_ms)
        except redis.exceptions.RedisError as e:
            if self._fail_closed:
                raise RevocationFailed(f'Failed to revoke: {e}') from e
            logger.warning('Failed to revoke token for %s: %s',
                           claims.subject, e)
            return
        logger.debug('Revoked token for %s for %i ms', claims.subject, ttl_ms)

    def is_revoked(self, token: str) -> bool:
        """
        Determine whether ``token`` has been revoked.

        Blank tokens are never revoked. If the store cannot be reached, the
        answer depends on whether the store fails closed.
        """
        if not token or not token.strip():
            return False
        try:
            return bool(self.r.exists(self.key(token)))
        except redis.exceptions.RedisError as e:
            logger.warning('Could not check revocation status: %s', e)
            return self._fail_closed


def init_app(app: Flask) -> None:
    """Set default configuration parameters for an application instance."""
    app.config.setdefault('REDIS_HOST', 'localhost')
    app.config.setdefault('REDIS_PORT', '6379')
    app.config.setdefault('REDIS_DATABASE', '0')
    app.config.setdefault('REDIS_TOKEN', None)
    app.config.setdefault('REDIS_SSL', False)
    app.config.setdefault('REDIS_CLUSTER', False)
    app.config.setdefault('REDIS_TIMEOUT', 5)
    app.config.setdefault('REDIS_FAKE', False)
    app.config.setdefault('REVOCATION_FAIL_CLOSED', False)


def get_connection(app: Optional[Flask] = None) -> redis.Redis:
    """Open a Redis client for the revocation store."""
    global _fake_server
    config = (app or current_app).config
    if bool(config.get('REDIS_FAKE', False)):
        # One in-memory server per process, so revocations outlive requests.
        if _fake_server is None:
            _fake_server = fakeredis.FakeServer()
        return fakeredis.FakeStrictRedis(server=_fake_server,
                                         decode_responses=True)

    host = config.get('REDIS_HOST', 'localhost')
    port = int(config.get('REDIS_PORT', '6379'))
    password = config.get('REDIS_TOKEN', None) or None
    ssl = bool(config.get('REDIS_SSL', False))
    timeout = float(config.get('REDIS_TIMEOUT', 5))
    logger.debug('New Redis connection at %s, port %s', host, port)
    if bool(config.get('REDIS_CLUSTER', False)):
        return RedisCluster(host=host, port=port, password=password, ssl=ssl,
                            socket_timeout=timeout,
                            socket_connect_timeout=timeout,
                            decode_responses=True)
    return redis.StrictRedis(host=host, port=port,
                             db=int(config.get('REDIS_DATABASE', '0')),
                             password=password, ssl=ssl,
                             socket_timeout=timeout,
                             socket_connect_timeout=timeout,
                             decode_responses=True)


def get_store(app: Optional[Flask] = None) -> RevocationStore:
    """Create a :class:`.RevocationStore` from application config."""
    config = (app or current_app).config
    fail_closed = bool(config.get('REVOCATION_FAIL_CLOSED', False))
    return RevocationStore(get_connection(app), get_codec(app),
                           fail_closed=fail_closed)


def current_store() -> RevocationStore:
    """Get/create the :class:`.RevocationStore` for this context."""
    if 'revocation_store' not in g:
        g.revocation_store = get_store()
    return g.revocation_store   # type: ignore


@wraps(RevocationStore.revoke)
def revoke(token: str, now: Optional[datetime] = None) -> None:
    """Mark ``token`` as revoked until it expires."""
    current_store().revoke(token, now=now)


@wraps(RevocationStore.is_revoked)
def is_revoked(token: str) -> bool:
    """Determine whether ``token`` has been revoked."""
    return current_store().is_revoked(token)
