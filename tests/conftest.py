import copy
import os
import sys
from datetime import datetime, timedelta

os.environ.setdefault('APP_ENV', 'testing')

import mysql.connector
import pytest

from config import TestingConfig
from models import (
    Admin, Event, RegistrationStatus, RegistrationType, Student
)
from utils.errors import AlreadyRegistered
from utils.helpers import generate_password_hash


class FakeDatabase:
    """内存版 DatabaseManager，方法签名与各 mixin 一致"""

    def __init__(self):
        self.students = {}
        self.events = {}
        self.registrations = {}
        self.participants = {}
        self.otps = []
        self.tokens = []
        self.admins = {}
        self.admin_sessions = {}
        self._ids = {'event': 0, 'registration': 0, 'otp': 0, 'token': 0, 'admin': 0}
        self.fail_otp_for = set()

    def _next_id(self, kind):
        self._ids[kind] += 1
        return self._ids[kind]

    def ping(self):
        return True

    # ---- students ----
    def get_student_by_gr(self, gr_number):
        student = self.students.get(gr_number)
        return copy.deepcopy(student)

    def upsert_students(self, students):
        for student in students:
            self.students[student.gr_number] = copy.deepcopy(student)
        return len(students)

    def get_students_with_count(self, keyword=None, limit=None, offset=None):
        rows = sorted(self.students.values(), key=lambda s: s.gr_number)
        if keyword:
            rows = [s for s in rows if keyword in s.gr_number or keyword in s.name or keyword in s.email]
        total = len(rows)
        start = offset or 0
        end = start + limit if limit else None
        return copy.deepcopy(rows[start:end]), total

    # ---- events ----
    def create_event(self, event):
        event.event_id = self._next_id('event')
        self.events[event.event_id] = copy.deepcopy(event)
        return event

    def get_event_by_id(self, event_id):
        return copy.deepcopy(self.events.get(event_id))

    def get_all_events(self, club_name=None):
        events = sorted(self.events.values(), key=lambda e: e.event_id, reverse=True)
        if club_name:
            events = [e for e in events if e.club_name == club_name]
        return copy.deepcopy(events)

    def update_event(self, event):
        self.events[event.event_id] = copy.deepcopy(event)
        return event

    def update_event_poster(self, event_id, poster_url):
        if event_id not in self.events:
            return False
        self.events[event_id].poster_url = poster_url
        return True

    def delete_event(self, event_id):
        return self.events.pop(event_id, None) is not None

    def count_event_registrations(self, event_id):
        return sum(1 for r in self.registrations.values() if r.event_id == event_id)

    def get_clubs(self):
        clubs = {}
        for event in self.get_all_events():
            clubs.setdefault(event.club_name, []).append(event)
        return [
            {'club_name': name, 'event_count': len(events), 'events': events}
            for name, events in sorted(clubs.items(), key=lambda item: item[0].lower())
        ]

    # ---- registrations ----
    def _with_event(self, registration):
        registration = copy.deepcopy(registration)
        event = self.events.get(registration.event_id)
        if event:
            registration.event_name = event.name
            registration.club_name = event.club_name
        return registration

    def create_registration(self, registration):
        registration.registration_id = self._next_id('registration')
        self.registrations[registration.registration_id] = copy.deepcopy(registration)
        if registration.registration_type == RegistrationType.GR_OTP:
            confirmed_key = 1 if registration.is_confirmed else None
            self.participants[registration.registration_id] = [
                {'gr_number': gr, 'is_leader': index == 0, 'position': index, 'confirmed_key': confirmed_key}
                for index, gr in enumerate(registration.participant_grs)
            ]
        return registration

    def get_registration_by_id(self, registration_id):
        registration = self.registrations.get(registration_id)
        return self._with_event(registration) if registration else None

    def find_confirmed_registration_for_gr(self, gr_number):
        for registration_id, rows in self.participants.items():
            for row in rows:
                if row['gr_number'] == gr_number and row['confirmed_key'] == 1:
                    return registration_id
        return None

    def find_registration_by_leader_email(self, event_id, email):
        for registration in self.registrations.values():
            if registration.event_id == event_id and registration.team_leader_email.lower() == email.lower():
                return copy.deepcopy(registration)
        return None

    def get_registration_participants(self, registration_id):
        return copy.deepcopy(self.participants.get(registration_id, []))

    def mark_participant_verified(self, registration_id, gr_number=None, email=None):
        registration = self.registrations.get(registration_id)
        if not registration:
            return False
        return registration.mark_participant_verified(gr_number=gr_number, email=email)

    def mark_registration_confirmed(self, registration_id):
        rows = self.participants.get(registration_id, [])
        for row in rows:
            other = self.find_confirmed_registration_for_gr(row['gr_number'])
            if other is not None and other != registration_id:
                raise AlreadyRegistered(row['gr_number'])
        for row in rows:
            row['confirmed_key'] = 1
        registration = self.registrations[registration_id]
        registration.registration_status = RegistrationStatus.CONFIRMED
        registration.verified = True
        registration.confirmed_at = registration.confirmed_at or datetime.now()
        return True

    def get_registrations_with_count(self, event_id=None, status=None, keyword=None, limit=None, offset=None):
        rows = sorted(self.registrations.values(), key=lambda r: r.registration_id, reverse=True)
        if event_id:
            rows = [r for r in rows if r.event_id == event_id]
        if status == 'verified':
            rows = [r for r in rows if r.verified]
        elif status == 'pending':
            rows = [r for r in rows if not r.verified]
        if keyword:
            rows = [
                r for r in rows
                if keyword in r.team_leader_name or keyword in r.team_leader_email
                or keyword in r.team_leader_enrollment
            ]
        total = len(rows)
        start = offset or 0
        end = start + limit if limit else None
        return [self._with_event(r) for r in rows[start:end]], total

    def get_registration_stats(self):
        total = len(self.registrations)
        verified = sum(1 for r in self.registrations.values() if r.verified)
        return {
            'total_events': len(self.events),
            'total_registrations': total,
            'verified_registrations': verified,
            'pending_registrations': total - verified
        }

    # ---- otp ----
    def create_otp_verification(self, otp):
        if otp.gr_number in self.fail_otp_for:
            raise mysql.connector.Error(msg='Lost connection to MySQL server during query')
        otp.otp_id = self._next_id('otp')
        self.otps.append(copy.deepcopy(otp))
        return otp

    def find_valid_otp(self, registration_id, gr_number, otp_code, now):
        matches = [
            o for o in self.otps
            if o.registration_id == registration_id and o.gr_number == gr_number
            and o.otp_code == otp_code and not o.verified and o.expires_at >= now
        ]
        if not matches:
            return None
        return copy.deepcopy(max(matches, key=lambda o: (o.created_at, o.otp_id)))

    def mark_otp_verified(self, otp_id):
        for otp in self.otps:
            if otp.otp_id == otp_id and not otp.verified:
                otp.verified = True
                return True
        return False

    def get_otps_by_registration(self, registration_id):
        return copy.deepcopy([o for o in self.otps if o.registration_id == registration_id])

    def expire_pending_otps(self, registration_id, gr_number, now):
        count = 0
        for otp in self.otps:
            if (otp.registration_id == registration_id and otp.gr_number == gr_number
                    and not otp.verified and otp.expires_at >= now):
                otp.expires_at = now - timedelta(seconds=1)
                count += 1
        return count

    def latest_otp(self, registration_id, gr_number):
        matches = [o for o in self.otps if o.registration_id == registration_id and o.gr_number == gr_number]
        return matches[-1] if matches else None

    # ---- tokens ----
    def create_verification_token(self, token):
        token.token_id = self._next_id('token')
        self.tokens.append(copy.deepcopy(token))
        return token

    def get_verification_token(self, token_value):
        for token in self.tokens:
            if token.token == token_value:
                return copy.deepcopy(token)
        return None

    def mark_token_verified(self, token_id, now):
        for token in self.tokens:
            if token.token_id == token_id and not token.verified:
                token.verified = True
                token.verified_at = now
                return True
        return False

    def get_tokens_by_registration(self, registration_id):
        return copy.deepcopy([t for t in self.tokens if t.registration_id == registration_id])

    # ---- admins ----
    def get_admin_by_username(self, username):
        return copy.deepcopy(self.admins.get(username))

    def add_admin(self, username, password_hash):
        admin = Admin(admin_id=self._next_id('admin'), username=username, password_hash=password_hash)
        self.admins[username] = admin
        return copy.deepcopy(admin)

    def create_admin_session(self, admin_session):
        self.admin_sessions[admin_session.session_token] = copy.deepcopy(admin_session)
        return admin_session

    def get_admin_session(self, session_token):
        return copy.deepcopy(self.admin_sessions.get(session_token))

    def delete_admin_session(self, session_token):
        return self.admin_sessions.pop(session_token, None) is not None

    def delete_expired_admin_sessions(self, now):
        expired = [token for token, s in self.admin_sessions.items() if s.expires_at <= now]
        for token in expired:
            del self.admin_sessions[token]
        return len(expired)


class FakeEmailProvider:
    """记录所有发送的邮件；fail_for 中的地址发送失败"""

    def __init__(self):
        self.sent = []
        self.fail_for = set()

    def send(self, to, subject, html_body):
        if to in self.fail_for:
            return False, 'mailbox rejected'
        self.sent.append({'to': to, 'subject': subject, 'html': html_body})
        return True, 'Email sent'


def add_student(db, gr_number, name=None, email=None, semester=3, class_name='TY-ICT-A'):
    student = Student(
        gr_number=gr_number,
        name=name or f'Student {gr_number}',
        email=email or f'{gr_number.lower()}@inst.edu',
        class_name=class_name,
        semester=semester
    )
    db.upsert_students([student])
    return student


def add_event(db, name='Hackathon', club_name='Coding Club', min_team_size=1, max_team_size=1):
    return db.create_event(Event(
        name=name,
        club_name=club_name,
        description='',
        min_team_size=min_team_size,
        max_team_size=max_team_size
    ))


@pytest.fixture
def settings():
    return TestingConfig


@pytest.fixture
def fake_db():
    return FakeDatabase()


@pytest.fixture
def fake_email():
    return FakeEmailProvider()


@pytest.fixture
def manager(fake_db, fake_email, settings):
    from registration_manager import RegistrationManager
    return RegistrationManager(db_manager=fake_db, email_provider=fake_email, settings=settings)


@pytest.fixture
def app(fake_db, fake_email, settings, monkeypatch):
    from app import create_app
    from utils.otp_service import OtpService
    import registration_manager as registration_module
    import admin_manager as admin_module

    flask_app = create_app('testing')

    for name, module in list(sys.modules.items()):
        if (name == 'api' or name.startswith('api.')) and hasattr(module, 'db_manager'):
            monkeypatch.setattr(module, 'db_manager', fake_db)

    manager_instance = registration_module.registration_manager
    monkeypatch.setattr(manager_instance, 'settings', settings)
    monkeypatch.setattr(manager_instance, 'db_manager', fake_db)
    monkeypatch.setattr(manager_instance, 'email_provider', fake_email)
    monkeypatch.setattr(manager_instance, 'otp_service', OtpService(fake_db, fake_email, settings))

    monkeypatch.setattr(admin_module.admin_manager, 'settings', settings)
    monkeypatch.setattr(admin_module.admin_manager, 'db_manager', fake_db)

    return flask_app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def admin_token(client, fake_db):
    fake_db.add_admin('admin', generate_password_hash('s3cret'))
    response = client.post('/api/admin/login', json={'username': 'admin', 'password': 's3cret'})
    assert response.status_code == 200
    return response.get_json()['data']['token']
