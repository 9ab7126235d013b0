"""Verify credentials and issue or revoke bearer tokens."""

import logging
from typing import Optional
from datetime import datetime

from . import passwords, revocation, tokens
from .exceptions import InvalidCredentials
from ..services import datastore

logger = logging.getLogger(__name__)

DUMMY_HASH = passwords.hash_password('not-a-real-password')
"""Checked against for unknown users, so both failures cost one hash."""


def authenticate(username: str, password: str,
                 now: Optional[datetime] = None) -> str:
    """
    Check a username and password, and issue a token on success.

    Parameters
    ----------
    username : str
    password : str
    now : :class:`datetime`
        Issue time of the token; defaults to the current time.

    Returns
    -------
    str
        A bearer token whose subject is ``username``.

    Raises
    ------
    :class:`InvalidCredentials`
        If the user does not exist or the password does not match. The two
        cases are not distinguished.

    """
    try:
        _, password_hash = datastore.get_credentials(username)
    except datastore.NoSuchUser as e:
        passwords.check_password(password, DUMMY_HASH)
        logger.debug('No such user: %s', username)
        raise InvalidCredentials('Invalid username or password') from e
    if not passwords.check_password(password, password_hash):
        logger.debug('Wrong password for %s', username)
        raise InvalidCredentials('Invalid username or password')
    return tokens.current_codec().issue(username, now=now)


def logout(token: str) -> None:
    """
    Revoke ``token`` so that it no longer authenticates requests.

    Raises
    ------
    :class:`.RevocationFailed`
        If the revocation store is down and configured to fail closed.

    """
    revocation.revoke(token)
