"""
Tests for the first-run admin bootstrap.
"""
from unittest import mock

from sqlmodel import select

from leadcrm.core import bootstrap
from leadcrm.core.users import password_helper
from leadcrm.models import User
from support import DatabaseTestCase


class TestBootstrap(DatabaseTestCase):
    def run_bootstrap(self, email="admin@example.com", password="s3cret-pass"):
        settings = mock.Mock(admin_email=email, admin_password=password, admin_username="admin")
        with mock.patch.object(bootstrap, "sync_engine", self.engine), \
                mock.patch.object(bootstrap, "create_sync_db_and_tables"), \
                mock.patch.object(bootstrap, "get_settings", return_value=settings):
            bootstrap.bootstrap_system()

    def test_creates_first_admin_on_empty_database(self):
        self.run_bootstrap()

        users = self.session.exec(select(User)).all()
        self.assertEqual(len(users), 1)
        admin = users[0]
        self.assertEqual(admin.role, "admin")
        self.assertTrue(admin.is_superuser)
        self.assertNotEqual(admin.hashed_password, "s3cret-pass")
        verified, _ = password_helper.verify_and_update("s3cret-pass", admin.hashed_password)
        self.assertTrue(verified)

    def test_existing_users_are_left_alone(self):
        self.make_user("someone")

        self.run_bootstrap()

        users = self.session.exec(select(User)).all()
        self.assertEqual([u.username for u in users], ["someone"])

    def test_missing_credentials_create_nothing(self):
        self.run_bootstrap(password="")

        self.assertEqual(self.session.exec(select(User)).all(), [])
