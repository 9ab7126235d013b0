"""
Controllers for logging in, registering and logging out.

A successful login returns a signed bearer token. The API is stateless: the
token itself is the session, and is presented as ``Authorization: Bearer
<token>`` on subsequent requests. Logging out revokes the token in the
revocation store, so that it stops working before it expires.
"""

import logging
from http import HTTPStatus
from typing import Optional

from werkzeug.datastructures import MultiDict
from werkzeug.exceptions import BadRequest, Conflict, ServiceUnavailable, \
    Unauthorized
from wtforms import Form, PasswordField, StringField
from wtforms.validators import DataRequired, Length

from ..auth import authenticate as authn, passwords
from ..auth.exceptions import InvalidCredentials, RevocationFailed
from ..services import datastore
from .util import ResponseData, response, strip, validate

logger = logging.getLogger(__name__)


class LoginForm(Form):
    """Log in form."""

    username = StringField('Username', validators=[
        DataRequired('Username is required'),
        Length(max=50, message='Username must be at most 50 characters')
    ])
    password = PasswordField('Password', validators=[
        DataRequired('Password is required'),
        Length(min=4, message='Password must be at least 4 characters')
    ])


class RegistrationForm(Form):
    """New account form."""

    username = StringField('Username', filters=[strip], validators=[
        DataRequired('Username is required'),
        Length(max=50, message='Username must be at most 50 characters')
    ])
    password = PasswordField('Password', validators=[
        DataRequired('Password is required'),
        Length(min=8, max=128,
               message='Password must be between 8 and 128 characters')
    ])


def login(form_data: MultiDict) -> ResponseData:
    """
    Authenticate a user and issue a bearer token.

    Parameters
    ----------
    form_data : MultiDict
        Should include `username` and `password` data.

    Returns
    -------
    dict
        Response data, including the token.
    int
        Status code. This should be 200 if all goes well.
    dict
        Headers to add to the response.

    Raises
    ------
    :class:`Unauthorized`
        If the credentials are not valid. The reason does not say whether
        the user exists.

    """
    form = LoginForm(form_data)
    validate(form)
    username = form.username.data
    try:
        token = authn.authenticate(username, form.password.data)
    except InvalidCredentials as e:
        logger.warning('Failed login attempt for %s', username)
        raise Unauthorized('Invalid username or password') from e

    logger.info('User %s authenticated successfully', username)
    data = response({'token': token, 'username': username},
                    message='Login successful')
    return data, HTTPStatus.OK, {}


def register(form_data: MultiDict) -> ResponseData:
    """Create a new account with the ``USER`` role."""
    form = RegistrationForm(form_data)
    validate(form)
    try:
        user = datastore.create_user(
            form.username.data,
            passwords.hash_password(form.password.data)
        )
    except datastore.DuplicateName as e:
        logger.debug('Registration failed: %s', e)
        raise Conflict(str(e)) from e

    logger.info('Registered new user %s', user.username)
    data = response({'username': user.username, 'role': user.role.value},
                    message='Registration successful')
    return data, HTTPStatus.CREATED, {}


def logout(token: Optional[str]) -> ResponseData:
    """
    Revoke the bearer token presented with the request.

    Raises
    ------
    :class:`BadRequest`
        If no bearer token was presented.
    :class:`ServiceUnavailable`
        If the token could not be revoked and the revocation store is
        configured to fail closed.

    """
    if not token:
        raise BadRequest('A bearer token is required to log out')
    try:
        authn.logout(token)
    except RevocationFailed as e:
        logger.warning('Logout failed: %s', e)
        raise ServiceUnavailable('Could not log out; please try again') from e
    logger.info('Logged out')
    return response(message='Logout successful'), HTTPStatus.OK, {}
