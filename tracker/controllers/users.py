"""Controllers for the authenticated user's own account."""

import logging
from http import HTTPStatus

from werkzeug.datastructures import MultiDict
from werkzeug.exceptions import NotFound, Unauthorized
from wtforms import Form, PasswordField
from wtforms.validators import DataRequired, Length

from .. import domain
from ..auth import authenticate as authn, passwords
from ..auth.exceptions import RevocationFailed
from ..services import datastore
from .util import ResponseData, response, validate

logger = logging.getLogger(__name__)


class PasswordForm(Form):
    """Change password form."""

    current_password = PasswordField('Current password', validators=[
        DataRequired('Current password is required')
    ])
    new_password = PasswordField('New password', validators=[
        DataRequired('New password is required'),
        Length(min=8, max=128,
               message='Password must be between 8 and 128 characters')
    ])


def get_current_user(session: domain.Session) -> ResponseData:
    """Describe the authenticated user."""
    data = {'username': session.username, 'role': session.role.value}
    return response(data), HTTPStatus.OK, {}


def change_password(session: domain.Session,
                    form_data: MultiDict) -> ResponseData:
    """Replace the caller's password after checking the current one."""
    form = PasswordForm(form_data)
    validate(form)
    try:
        _, password_hash = datastore.get_credentials(session.username)
    except datastore.NoSuchUser as e:
        raise NotFound('User not found') from e
    if not passwords.check_password(form.current_password.data,
                                    password_hash):
        logger.warning('Wrong current password for %s', session.username)
        raise Unauthorized('Current password is incorrect')

    datastore.set_password(session.username,
                           passwords.hash_password(form.new_password.data))
    logger.info('User %s changed their password', session.username)
    return response(message='Password updated'), HTTPStatus.OK, {}


def delete_account(session: domain.Session) -> ResponseData:
    """
    Delete the caller's account and revoke the token they presented.

    Records the user owned are kept, without an owner.
    """
    try:
        datastore.delete_user(session.username)
    except datastore.NoSuchUser as e:
        raise NotFound('User not found') from e
    try:
        authn.logout(session.token)
    except RevocationFailed as e:
        # Tokens for deleted users no longer resolve to an identity.
        logger.warning('Could not revoke token of deleted user %s: %s',
                       session.username, e)
    logger.info('User %s deleted their account', session.username)
    data = response(message='Your account was deleted successfully.')
    return data, HTTPStatus.OK, {}
