"""Tests for :mod:`tracker.bootstrap`."""

from unittest import TestCase

from flask import Flask

from .. import bootstrap, domain
from ..auth import passwords
from ..services import datastore


class TestBootstrap(TestCase):
    """The admin account is created or repaired from config."""

    def setUp(self):
        """Create an app with an empty database."""
        self.app = Flask('test')
        self.app.config.update(SQLALCHEMY_DATABASE_URI='sqlite://',
                               ADMIN_USERNAME='root',
                               ADMIN_PASSWORD='rootpass1')
        datastore.init_app(self.app)
        bootstrap.init_app(self.app)
        with self.app.app_context():
            datastore.create_all()

    def tearDown(self):
        """Drop the tables."""
        with self.app.app_context():
            datastore.drop_all()

    def test_create(self):
        """A missing admin is created."""
        with self.app.app_context():
            user = bootstrap.bootstrap_admin('root', 'rootpass1')
            self.assertIs(user.role, domain.Role.ADMIN)
            _, password_hash = datastore.get_credentials('root')
        self.assertTrue(passwords.check_password('rootpass1', password_hash))

    def test_repair(self):
        """An existing account gets the configured password and role."""
        with self.app.app_context():
            datastore.create_user('root', passwords.hash_password('oldpass1'))
            bootstrap.bootstrap_admin('root', 'rootpass1')
            user, password_hash = datastore.get_credentials('root')
        self.assertIs(user.role, domain.Role.ADMIN)
        self.assertTrue(passwords.check_password('rootpass1', password_hash))
        self.assertFalse(passwords.check_password('oldpass1', password_hash))

    def test_blank(self):
        """Nothing happens without credentials."""
        with self.app.app_context():
            self.assertIsNone(bootstrap.bootstrap_admin('  ', 'rootpass1'))
            self.assertIsNone(bootstrap.bootstrap_admin('root', ''))
            self.assertIsNone(datastore.find_user('root'))

    def test_commands(self):
        """The admin, user and orphan commands work from the CLI."""
        runner = self.app.test_cli_runner()
        result = runner.invoke(args=['bootstrap-admin'])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn('Admin user root is ready', result.output)

        result = runner.invoke(args=['create-user', 'alice',
                                     '--password', 'foopass123'])
        self.assertEqual(result.exit_code, 0, result.output)
        result = runner.invoke(args=['create-user', 'alice',
                                     '--password', 'foopass123'])
        self.assertNotEqual(result.exit_code, 0)

        with self.app.app_context():
            datastore.save_project(domain.Project(name='Mercury'))
        result = runner.invoke(args=['assign-orphans', '--username', 'alice'])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn('Assigned 1 projects to alice', result.output)
        with self.app.app_context():
            visible = datastore.list_projects(domain.Visibility(owner='alice'))
        self.assertEqual([p.name for p in visible], ['Mercury'])

        result = runner.invoke(args=['assign-orphans', '--username', 'nobody'])
        self.assertNotEqual(result.exit_code, 0)
