"""Tests for :mod:`tracker.auth.revocation`."""

from unittest import TestCase, mock
from datetime import datetime, timedelta

import fakeredis
from flask import Flask
from pytz import UTC
from redis.exceptions import ConnectionError

from .. import revocation, tokens
from ..exceptions import RevocationFailed


class TestRevocationStore(TestCase):
    """Revoked tokens are kept in Redis until they expire."""

    def setUp(self):
        """Use an isolated in-memory Redis."""
        self.codec = tokens.TokenCodec('foosecret', expiration=3600)
        self.r = fakeredis.FakeStrictRedis(server=fakeredis.FakeServer(),
                                           decode_responses=True)
        self.store = revocation.RevocationStore(self.r, self.codec)

    def test_revoke(self):
        """A revoked token is reported as revoked."""
        token = self.codec.issue('alice')
        self.assertFalse(self.store.is_revoked(token))
        self.store.revoke(token)
        self.assertTrue(self.store.is_revoked(token))
        self.assertEqual(self.r.get(f'auth:blacklist:{token}'), '1')

    def test_other_tokens_unaffected(self):
        """Revoking one token leaves the others alone."""
        token = self.codec.issue('alice')
        other = self.codec.issue('bob')
        self.store.revoke(token)
        self.assertFalse(self.store.is_revoked(other))

    def test_revoke_twice(self):
        """Revoking is idempotent."""
        token = self.codec.issue('alice')
        self.store.revoke(token)
        self.store.revoke(token)
        self.assertTrue(self.store.is_revoked(token))
        self.assertEqual(len(self.r.keys('auth:blacklist:*')), 1)

    def test_entry_expires_with_token(self):
        """The entry lives as long as the token has left to live."""
        token = self.codec.issue('alice')
        self.store.revoke(token)
        ttl = self.r.pttl(self.store.key(token))
        self.assertGreater(ttl, 3590 * 1000)
        self.assertLessEqual(ttl, 3600 * 1000)

    def test_entry_ttl_from_now(self):
        """The remaining lifetime is measured from ``now``."""
        token = self.codec.issue('alice')
        claims = self.codec.parse(token)
        self.store.revoke(token, now=claims.expires - timedelta(minutes=10))
        ttl = self.r.pttl(self.store.key(token))
        self.assertGreater(ttl, 590 * 1000)
        self.assertLessEqual(ttl, 600 * 1000)

    def test_revoke_after_expiry(self):
        """Nothing is stored for a token that has run out."""
        token = self.codec.issue('alice')
        claims = self.codec.parse(token)
        self.store.revoke(token, now=claims.expires + timedelta(seconds=1))
        self.assertFalse(self.store.is_revoked(token))
        self.assertEqual(self.r.keys('auth:blacklist:*'), [])

    def test_revoke_expired_token(self):
        """Expired tokens no longer parse, so they are ignored."""
        token = self.codec.issue(
            'alice', now=datetime.now(tz=UTC) - timedelta(hours=2)
        )
        self.store.revoke(token)
        self.assertEqual(self.r.keys('auth:blacklist:*'), [])

    def test_revoke_garbage(self):
        """Invalid and blank tokens are ignored."""
        for value in ['', '   ', 'not-a-token']:
            self.store.revoke(value)
            self.assertFalse(self.store.is_revoked(value))
        self.assertEqual(self.r.keys('auth:blacklist:*'), [])


class TestStoreUnavailable(TestCase):
    """Behavior when Redis cannot be reached."""

    def setUp(self):
        """Every Redis command fails."""
        self.codec = tokens.TokenCodec('foosecret')
        self.connection = mock.MagicMock()
        self.connection.set.side_effect = ConnectionError('down')
        self.connection.exists.side_effect = ConnectionError('down')
        self.token = self.codec.issue('alice')

    def test_fail_open(self):
        """Failures are swallowed and tokens are treated as not revoked."""
        store = revocation.RevocationStore(self.connection, self.codec)
        store.revoke(self.token)
        self.assertEqual(self.connection.set.call_count, 1)
        self.assertFalse(store.is_revoked(self.token))

    def test_fail_closed(self):
        """Failures propagate and every token is treated as revoked."""
        store = revocation.RevocationStore(self.connection, self.codec,
                                           fail_closed=True)
        with self.assertRaises(RevocationFailed):
            store.revoke(self.token)
        self.assertTrue(store.is_revoked(self.token))

    def test_blank_token_skips_store(self):
        """Blank tokens never reach the store."""
        store = revocation.RevocationStore(self.connection, self.codec,
                                           fail_closed=True)
        self.assertFalse(store.is_revoked(''))
        store.revoke('')
        self.assertEqual(self.connection.exists.call_count, 0)
        self.assertEqual(self.connection.set.call_count, 0)


class TestGetConnection(TestCase):
    """The connection is chosen from application config."""

    def setUp(self):
        """Create a bare app with revocation defaults."""
        self.app = Flask('test')
        revocation.init_app(self.app)

    def test_fake(self):
        """``REDIS_FAKE`` gives a process-wide in-memory server."""
        self.app.config['REDIS_FAKE'] = True
        first = revocation.get_connection(self.app)
        second = revocation.get_connection(self.app)
        first.set('auth:blacklist:shared', '1')
        self.assertTrue(second.exists('auth:blacklist:shared'))
        first.delete('auth:blacklist:shared')

    @mock.patch(f'{revocation.__name__}.redis')
    def test_standalone(self, mock_redis):
        """A plain Redis client is created from the config."""
        self.app.config.update(REDIS_HOST='redis.local', REDIS_PORT='6380',
                               REDIS_DATABASE='2', REDIS_TOKEN='s3cret')
        revocation.get_connection(self.app)
        _, kwargs = mock_redis.StrictRedis.call_args
        self.assertEqual(kwargs['host'], 'redis.local')
        self.assertEqual(kwargs['port'], 6380)
        self.assertEqual(kwargs['db'], 2)
        self.assertEqual(kwargs['password'], 's3cret')
        self.assertFalse(kwargs['ssl'])

    @mock.patch(f'{revocation.__name__}.RedisCluster')
    def test_cluster(self, mock_cluster):
        """``REDIS_CLUSTER`` selects the cluster client."""
        self.app.config.update(REDIS_CLUSTER=True, REDIS_SSL=True)
        revocation.get_connection(self.app)
        _, kwargs = mock_cluster.call_args
        self.assertEqual(kwargs['host'], 'localhost')
        self.assertTrue(kwargs['ssl'])

    def test_store_from_config(self):
        """The store picks up the fail-closed flag."""
        self.app.config.update(REDIS_FAKE=True, REVOCATION_FAIL_CLOSED=True,
                               JWT_SECRET='foosecret')
        store = revocation.get_store(self.app)
        self.assertTrue(store._fail_closed)
