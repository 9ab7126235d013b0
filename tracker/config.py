"""Flask configuration."""

import os

SECRET_KEY = os.environ.get('SECRET_KEY', 'asdf1234')

LOGLEVEL = int(os.environ.get('LOGLEVEL', 20))
LOG_JSON = bool(int(os.environ.get('LOG_JSON', '0')))
"""If 1, log records are emitted as JSON objects."""

JWT_SECRET = os.environ.get('JWT_SECRET', 'foosecret')
"""
Secret used to sign bearer tokens.

Secrets shorter than 32 bytes are zero-padded, which adds no entropy. Use a
long random value in production.
"""
JWT_EXPIRATION = int(os.environ.get('JWT_EXPIRATION', '86400'))
"""Lifetime of a bearer token, in seconds."""

REDIS_HOST = os.environ.get('REDIS_HOST', 'localhost')
REDIS_PORT = os.environ.get('REDIS_PORT', '6379')
REDIS_DATABASE = os.environ.get('REDIS_DATABASE', '0')
REDIS_TOKEN = os.environ.get('REDIS_TOKEN', None)
"""This is the password used in the AUTH procedure."""
REDIS_SSL = bool(int(os.environ.get('REDIS_SSL', '0')))
REDIS_CLUSTER = bool(int(os.environ.get('REDIS_CLUSTER', '0')))
"""If 1, expects a redis cluster; otherwise expects a single redis node."""
REDIS_TIMEOUT = float(os.environ.get('REDIS_TIMEOUT', '5'))
"""Socket timeout for revocation store calls, in seconds."""

REDIS_FAKE = bool(int(os.environ.get('REDIS_FAKE', '0')))
"""Use the FakeRedis library instead of a redis service.

Useful for testing, dev, beta."""

REVOCATION_FAIL_CLOSED = \
    bool(int(os.environ.get('REVOCATION_FAIL_CLOSED', '0')))
"""
What to do when the revocation store cannot be reached.

If 0, a failed revocation is logged and logout still succeeds, and tokens are
assumed not to be revoked. If 1, logout fails with 503 and every bearer
token is treated as revoked until the store is back.
"""

SQLALCHEMY_DATABASE_URI = os.environ.get('SQLALCHEMY_DATABASE_URI',
                                         'sqlite://')
SQLALCHEMY_TRACK_MODIFICATIONS = False
CREATE_DB = bool(int(os.environ.get('CREATE_DB', 0)))

ADMIN_USERNAME = os.environ.get('ADMIN_USERNAME', '')
ADMIN_PASSWORD = os.environ.get('ADMIN_PASSWORD', '')
"""Credentials for the administrator account created at startup."""
