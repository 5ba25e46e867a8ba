from contextlib import contextmanager
from datetime import datetime, timedelta
from unittest import mock

import pytest
from mysql.connector import IntegrityError, errorcode

import database
from database import DatabaseManager
from models import DATABASE_SCHEMA, RegistrationStatus
from utils.errors import AlreadyRegistered


@pytest.fixture
def cursor():
    return mock.MagicMock()


@pytest.fixture
def conn(cursor):
    connection = mock.MagicMock()
    connection.cursor.return_value = cursor
    return connection


@pytest.fixture
def db(conn, settings, monkeypatch):
    manager = DatabaseManager(settings)

    @contextmanager
    def get_connection():
        yield conn

    monkeypatch.setattr(manager, 'get_connection', get_connection)
    return manager


def _sql(call):
    return ' '.join(call.args[0].split())


# ==================== 报名确认 ====================

def test_confirm_duplicate_entry_reports_conflicting_gr(db, conn, cursor):
    cursor.execute.side_effect = [
        IntegrityError(msg="Duplicate entry 'GR200-1'", errno=errorcode.ER_DUP_ENTRY),
        None
    ]
    cursor.fetchone.return_value = ('GR200',)

    with pytest.raises(AlreadyRegistered) as excinfo:
        db.mark_registration_confirmed(7)

    assert excinfo.value.extra['identifier'] == 'GR200'
    conn.rollback.assert_called_once()
    conn.commit.assert_not_called()

    conflict_query = cursor.execute.call_args_list[1]
    assert 'other.confirmed_key = 1' in _sql(conflict_query)
    assert 'ORDER BY p.position' in _sql(conflict_query)
    assert conflict_query.args[1] == (7,)


def test_confirm_other_integrity_errors_propagate(db, conn, cursor):
    cursor.execute.side_effect = IntegrityError(
        msg='Cannot add or update a child row', errno=errorcode.ER_NO_REFERENCED_ROW_2
    )

    with pytest.raises(IntegrityError):
        db.mark_registration_confirmed(7)
    conn.commit.assert_not_called()


def test_confirm_sets_participants_and_status(db, conn, cursor):
    assert db.mark_registration_confirmed(7) is True

    participants_update, registration_update = cursor.execute.call_args_list
    assert 'SET confirmed_key = 1' in _sql(participants_update)
    assert registration_update.args[1] == (RegistrationStatus.CONFIRMED.value, 7)
    assert 'COALESCE(confirmed_at, NOW())' in _sql(registration_update)
    conn.commit.assert_called_once()


# ==================== 验证码 ====================

@pytest.mark.parametrize('rowcount, expected', [(1, True), (0, False)])
def test_mark_otp_verified_is_one_way(db, cursor, rowcount, expected):
    cursor.rowcount = rowcount

    assert db.mark_otp_verified(11) is expected
    statement = cursor.execute.call_args
    assert 'WHERE otp_id = %s AND verified = FALSE' in _sql(statement)
    assert statement.args[1] == (11,)


def test_find_valid_otp_includes_the_expiry_instant(db, cursor):
    now = datetime(2024, 3, 1, 10, 10, 0)
    cursor.fetchone.return_value = None

    assert db.find_valid_otp(3, 'GR100', '000042', now) is None
    statement = cursor.execute.call_args
    assert 'expires_at >= %s' in _sql(statement)
    assert 'ORDER BY created_at DESC, otp_id DESC' in _sql(statement)
    assert statement.args[1] == (3, 'GR100', '000042', now)


def test_expire_pending_otps_moves_expiry_into_the_past(db, conn, cursor):
    now = datetime(2024, 3, 1, 10, 5, 0)
    cursor.rowcount = 2

    assert db.expire_pending_otps(3, 'GR100', now) == 2
    statement = cursor.execute.call_args
    assert 'verified = FALSE AND expires_at >= %s' in _sql(statement)
    assert statement.args[1] == (now - timedelta(seconds=1), 3, 'GR100', now)
    conn.commit.assert_called_once()


# ==================== 建表 ====================

def test_init_database_only_creates_tables(db, cursor, monkeypatch):
    monkeypatch.setattr(database.mysql.connector, 'connect', mock.MagicMock())
    cursor.fetchone.return_value = (1,)

    db.init_database()

    statements = [_sql(call) for call in cursor.execute.call_args_list]
    assert sum(s.startswith('CREATE TABLE') for s in statements) == len(DATABASE_SCHEMA)
    assert not [s for s in statements if s.startswith('ALTER TABLE')]
