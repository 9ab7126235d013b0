"""
Stateless authentication with revocable bearer tokens.

:class:`Auth` resolves the caller's identity once per request and attaches it
to the request as ``request.auth``: a :class:`domain.Session` when a valid,
unrevoked bearer token for an existing user was presented, ``None``
otherwise. Resolution never fails the request; routes decide whether an
anonymous caller is acceptable (see :mod:`.decorators`).
"""

import logging
from typing import Optional

from flask import Flask, request

from . import decorators, ownership, revocation, tokens
from .exceptions import InvalidToken
from .. import domain
from ..services import datastore

logger = logging.getLogger(__name__)


def resolve_identity(header: Optional[str]) -> Optional[domain.Session]:
    """
    Resolve the caller identity from an ``Authorization`` header value.

    Missing headers, headers without the ``Bearer`` scheme, tokens that do
    not parse, revoked tokens and tokens for deleted users all resolve to
    ``None``. The revocation store is only consulted for tokens that parse.

    Parameters
    ----------
    header : str or None

    Returns
    -------
    :class:`domain.Session` or None

    """
    token = tokens.extract_bearer(header)
    if token is None:
        return None
    try:
        claims = tokens.current_codec().parse(token)
    except InvalidToken as e:
        logger.debug('Ignoring bearer token: %s', e)
        return None
    if revocation.is_revoked(token):
        logger.debug('Revoked token presented for %s', claims.subject)
        return None
    user = datastore.find_user(claims.subject)
    if user is None:
        logger.debug('Token subject %s no longer exists', claims.subject)
        return None
    return domain.Session(user=user, token=token, expires=claims.expires)


class Auth(object):
    """
    Attaches the caller identity to the request.

    Intended for use in a Flask application factory, for example:

    .. code-block:: python

       from flask import Flask
       from tracker.auth import Auth


       def create_web_app() -> Flask:
          app = Flask('tracker')
          app.config.from_pyfile('config.py')
          Auth(app)
          app.register_blueprint(routes.blueprint)
          return app

    """

    def __init__(self, app: Optional[Flask] = None) -> None:
        """
        Initialize ``app`` if provided.

        Parameters
        ----------
        app : :class:`Flask`

        """
        if app is not None:
            self.init_app(app)

    def init_app(self, app: Flask) -> None:
        """Set config defaults and register the request hook."""
        tokens.init_app(app)
        revocation.init_app(app)
        app.before_request(self.load_identity)

    def load_identity(self) -> None:
        """Resolve the identity for the current request."""
        request.auth = resolve_identity(request.headers.get('Authorization'))
