"""
Administrative setup: the bootstrap admin account and one-off migrations.

These are registered on the application as Flask CLI commands, e.g.::

    flask --app wsgi bootstrap-admin
    flask --app wsgi assign-orphans --username admin
    flask --app wsgi create-user alice --password s3cretpass

"""

import logging
from typing import Optional

import click
from flask import Flask, current_app
from flask.cli import with_appcontext

from . import domain
from .auth import passwords
from .services import datastore

logger = logging.getLogger(__name__)


def bootstrap_admin(username: Optional[str],
                    password: Optional[str]) -> Optional[domain.User]:
    """
    Make sure an admin account with the given credentials exists.

    If the account exists but its password does not match, the password is
    reset and the account is made an admin. Blank credentials are skipped.

    Returns
    -------
    :class:`domain.User` or None
        ``None`` if bootstrapping was skipped.

    """
    username = (username or '').strip()
    if not username or not password:
        logger.warning('Admin credentials are not configured; skipping')
        return None

    try:
        user, password_hash = datastore.get_credentials(username)
    except datastore.NoSuchUser:
        user = datastore.create_user(username,
                                     passwords.hash_password(password),
                                     role=domain.Role.ADMIN)
        logger.info('Created admin user %s', username)
        return user

    if not passwords.check_password(password, password_hash) \
            or user.role is not domain.Role.ADMIN:
        user = datastore.set_password(username,
                                      passwords.hash_password(password),
                                      role=domain.Role.ADMIN)
        logger.info('Updated credentials of admin user %s', username)
    return user


def assign_orphans(username: str) -> int:
    """Give every project without an owner to ``username``."""
    count = datastore.assign_unowned_projects(username)
    logger.info('Assigned %i unowned projects to %s', count, username)
    return count


@click.command('bootstrap-admin')
@with_appcontext
def bootstrap_admin_command() -> None:
    """Create or update the admin account from the configuration."""
    datastore.create_all()
    user = bootstrap_admin(current_app.config.get('ADMIN_USERNAME'),
                           current_app.config.get('ADMIN_PASSWORD'))
    if user is None:
        click.echo('ADMIN_USERNAME and ADMIN_PASSWORD are not set')
    else:
        click.echo(f'Admin user {user.username} is ready')


@click.command('assign-orphans')
@with_appcontext
@click.option('--username', default='admin',
              help='User who will own the unowned projects.')
def assign_orphans_command(username: str) -> None:
    """Assign projects without an owner to a user."""
    try:
        count = assign_orphans(username)
    except datastore.NoSuchUser as e:
        raise click.ClickException(f'No such user: {username}') from e
    click.echo(f'Assigned {count} projects to {username}')


@click.command('create-user')
@with_appcontext
@click.argument('username')
@click.option('--password', prompt=True, hide_input=True,
              confirmation_prompt=True)
@click.option('--admin', is_flag=True, default=False,
              help='Give the user the ADMIN role.')
def create_user_command(username: str, password: str, admin: bool) -> None:
    """Create a new user."""
    datastore.create_all()
    role = domain.Role.ADMIN if admin else domain.Role.USER
    try:
        user = datastore.create_user(username.strip(),
                                     passwords.hash_password(password),
                                     role=role)
    except datastore.DuplicateName as e:
        raise click.ClickException(str(e)) from e
    click.echo(f'Created {user.role.value} user {user.username}')


def init_app(app: Flask) -> None:
    """Register the admin commands on ``app``."""
    app.cli.add_command(bootstrap_admin_command)
    app.cli.add_command(assign_orphans_command)
    app.cli.add_command(create_user_command)
