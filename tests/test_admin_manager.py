from datetime import datetime, timedelta

import pytest

from admin_manager import AdminManager
from utils.helpers import generate_password_hash


@pytest.fixture
def admins(fake_db, settings):
    fake_db.add_admin('admin', generate_password_hash('s3cret'))
    return AdminManager(db_manager=fake_db, settings=settings)


def test_login_creates_session(admins, fake_db, settings):
    admin_session = admins.login('admin', 's3cret')

    assert admin_session is not None
    assert len(admin_session.session_token) == 64
    lifetime = admin_session.expires_at - admin_session.created_at
    assert lifetime == timedelta(hours=settings.ADMIN_SESSION_LIFETIME_HOURS)
    assert fake_db.get_admin_session(admin_session.session_token) is not None


def test_login_rejects_bad_credentials(admins, fake_db):
    assert admins.login('admin', 'wrong') is None
    assert admins.login('nobody', 's3cret') is None
    assert fake_db.admin_sessions == {}


def test_validate_session(admins):
    admin_session = admins.login('admin', 's3cret')
    assert admins.validate_session(admin_session.session_token).admin_id == admin_session.admin_id
    assert admins.validate_session('unknown') is None
    assert admins.validate_session(None) is None


def test_expired_session_is_removed(admins, fake_db):
    now = datetime(2024, 3, 1, 9, 0)
    admin_session = admins.create_session(fake_db.get_admin_by_username('admin'), now=now)

    later = admin_session.expires_at
    assert admins.validate_session(admin_session.session_token, now=later) is None
    assert fake_db.get_admin_session(admin_session.session_token) is None


def test_login_purges_expired_sessions(admins, fake_db):
    stale = admins.create_session(fake_db.get_admin_by_username('admin'), now=datetime(2020, 1, 1))
    admins.login('admin', 's3cret')
    assert fake_db.get_admin_session(stale.session_token) is None


def test_revoke_session(admins):
    admin_session = admins.login('admin', 's3cret')
    assert admins.revoke_session(admin_session.session_token) is True
    assert admins.validate_session(admin_session.session_token) is None
