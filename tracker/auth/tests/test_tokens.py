"""Tests for :mod:`tracker.auth.tokens`."""

from unittest import TestCase
from datetime import datetime, timedelta

import jwt
from pytz import UTC

from .. import tokens
from ..exceptions import InvalidToken, ConfigurationError


class TestIssueAndParse(TestCase):
    """Tokens issued by a codec are accepted by the same codec."""

    def setUp(self):
        """Create a codec with a short development secret."""
        self.codec = tokens.TokenCodec('foosecret', expiration=3600)

    def test_subject_and_expiry(self):
        """The subject and expiry survive the trip through the token."""
        now = datetime.now(tz=UTC)
        token = self.codec.issue('alice', now=now)
        claims = self.codec.parse(token)
        self.assertEqual(claims.subject, 'alice')
        self.assertEqual(claims.expires,
                         now.replace(microsecond=0) + timedelta(hours=1))
        self.assertEqual(claims.expires - claims.issued, timedelta(hours=1))

    def test_sub_second_now(self):
        """The expiry counts from the issue time truncated to seconds."""
        now = datetime.now(tz=UTC).replace(microsecond=750000) \
            - timedelta(seconds=1)
        claims = self.codec.parse(self.codec.issue('alice', now=now))
        self.assertEqual(claims.issued, now.replace(microsecond=0))
        self.assertEqual(claims.expires,
                         now.replace(microsecond=0) + timedelta(hours=1))
        self.assertNotEqual(claims.expires, now + timedelta(hours=1))

    def test_naive_now(self):
        """A naive issue time is taken to be UTC."""
        now = datetime.now(tz=UTC).replace(tzinfo=None)
        claims = self.codec.parse(self.codec.issue('alice', now=now))
        self.assertEqual(claims.issued,
                         UTC.localize(now.replace(microsecond=0)))

    def test_custom_ttl(self):
        """The lifetime can be set per token."""
        token = self.codec.issue('alice', ttl=timedelta(minutes=5))
        claims = self.codec.parse(token)
        self.assertEqual(claims.expires - claims.issued, timedelta(minutes=5))

    def test_expired(self):
        """A token past its expiry is rejected."""
        issued = datetime.now(tz=UTC) - timedelta(hours=2)
        token = self.codec.issue('alice', now=issued)
        with self.assertRaises(InvalidToken):
            self.codec.parse(token)
        self.assertFalse(self.codec.is_valid(token))

    def test_non_positive_ttl(self):
        """A token issued without any lifetime is never valid."""
        issued = datetime.now(tz=UTC) - timedelta(seconds=5)
        token = self.codec.issue('alice', now=issued, ttl=timedelta(0))
        self.assertFalse(self.codec.is_valid(token))

    def test_other_secret(self):
        """A token signed with another secret is rejected."""
        other = tokens.TokenCodec('someothersecret')
        token = other.issue('alice')
        with self.assertRaises(InvalidToken):
            self.codec.parse(token)

    def test_tampered_payload(self):
        """Altering the payload invalidates the signature."""
        header, _, signature = self.codec.issue('alice').split('.')
        forged = jwt.encode({'sub': 'admin', 'exp': 9999999999},
                            tokens.signing_key('whatever'),
                            algorithm='HS256').split('.')[1]
        with self.assertRaises(InvalidToken):
            self.codec.parse('.'.join([header, forged, signature]))

    def test_malformed(self):
        """Garbage and empty strings are not tokens."""
        for value in ['', 'foo', 'foo.bar.baz', 'a.b']:
            self.assertFalse(self.codec.is_valid(value), value)

    def test_missing_subject(self):
        """A correctly signed token without a subject is rejected."""
        token = jwt.encode(
            {'exp': int((datetime.now(tz=UTC) + timedelta(hours=1))
                        .timestamp())},
            tokens.signing_key('foosecret'),
            algorithm='HS256'
        )
        with self.assertRaises(InvalidToken):
            self.codec.parse(token)

    def test_short_secret_is_padded(self):
        """Short secrets are zero-extended to the minimum key length."""
        key = tokens.signing_key('foosecret')
        self.assertEqual(len(key), tokens.MIN_KEY_LENGTH)
        self.assertTrue(key.startswith(b'foosecret'))
        payload = jwt.decode(self.codec.issue('alice'),
                             b'foosecret'.ljust(32, b'\x00'),
                             algorithms=['HS256'])
        self.assertEqual(payload['sub'], 'alice')

    def test_long_secret_is_unchanged(self):
        """Secrets that are long enough are used as-is."""
        secret = 'x' * 40
        self.assertEqual(tokens.signing_key(secret), secret.encode('utf-8'))

    def test_empty_secret(self):
        """A codec cannot be created without a secret."""
        with self.assertRaises(ConfigurationError):
            tokens.TokenCodec('')


class TestExtractBearer(TestCase):
    """Only ``Bearer`` authorization headers carry a token."""

    def test_bearer(self):
        """The token follows the prefix."""
        self.assertEqual(tokens.extract_bearer('Bearer abc.def.ghi'),
                         'abc.def.ghi')

    def test_surrounding_whitespace(self):
        """Whitespace around the token is ignored."""
        self.assertEqual(tokens.extract_bearer('Bearer  abc  '), 'abc')

    def test_no_header(self):
        """No header, no token."""
        self.assertIsNone(tokens.extract_bearer(None))
        self.assertIsNone(tokens.extract_bearer(''))

    def test_other_scheme(self):
        """Other schemes and other casings are not accepted."""
        self.assertIsNone(tokens.extract_bearer('Basic Zm9vOmJhcg=='))
        self.assertIsNone(tokens.extract_bearer('bearer abc'))
        self.assertIsNone(tokens.extract_bearer('Bearerabc'))

    def test_blank_token(self):
        """A prefix without a token yields nothing."""
        self.assertIsNone(tokens.extract_bearer('Bearer '))
        self.assertIsNone(tokens.extract_bearer('Bearer    '))
