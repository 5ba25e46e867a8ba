from datetime import datetime, timedelta

import pytest

from models import Registration, RegistrationType
from utils.errors import DeliveryFailure, InvalidOtp, IssuanceFailure, StudentNotFound
from utils.otp_service import OtpService

from conftest import add_event, add_student


@pytest.fixture
def service(fake_db, fake_email, settings):
    return OtpService(fake_db, fake_email, settings)


@pytest.fixture
def pending_registration(fake_db):
    event = add_event(fake_db, min_team_size=1, max_team_size=2)
    leader = add_student(fake_db, 'GR100', name='Leader')
    member = add_student(fake_db, 'GR200', name='Member')
    registration = Registration(
        event_id=event.event_id,
        registration_type=RegistrationType.GR_OTP,
        team_leader_gr=leader.gr_number,
        team_leader_name=leader.name,
        team_leader_enrollment=leader.gr_number,
        team_leader_email=leader.email,
        team_leader_department=leader.class_name,
        team_leader_program='Engineering',
        team_leader_semester=leader.semester,
        team_members=[{'name': member.name, 'enrollment': member.gr_number, 'email': member.email}]
    )
    return fake_db.create_registration(registration)


def test_generate_code_keeps_leading_zeros(monkeypatch):
    monkeypatch.setattr('utils.otp_service.secrets.randbelow', lambda upper: 42)
    assert OtpService.generate_code() == '000042'


def test_generate_code_is_six_digits():
    for _ in range(20):
        code = OtpService.generate_code()
        assert len(code) == 6 and code.isdigit()


def test_issue_persists_and_sends(service, fake_db, fake_email, pending_registration):
    now = datetime(2024, 3, 1, 10, 0, 0)
    info = service.issue(pending_registration.registration_id, 'GR100', now=now)

    otp = fake_db.latest_otp(pending_registration.registration_id, 'GR100')
    assert otp.expires_at == now + timedelta(minutes=10)
    assert otp.verified is False
    assert info['email'] == 'gr100@inst.edu'
    assert 'otp_code' not in info
    assert fake_email.sent[-1]['to'] == 'gr100@inst.edu'
    assert otp.otp_code in fake_email.sent[-1]['html']


def test_issue_unknown_student_stores_nothing(service, fake_db, pending_registration):
    with pytest.raises(StudentNotFound):
        service.issue(pending_registration.registration_id, 'GR999')
    assert fake_db.otps == []


def test_issue_storage_failure_sends_nothing(service, fake_db, fake_email, settings, pending_registration):
    fake_db.fail_otp_for.add('GR100')
    with pytest.raises(IssuanceFailure) as excinfo:
        service.issue(pending_registration.registration_id, 'GR100')
    assert excinfo.value.status_code == 503
    assert settings.SUPPORT_CONTACT in excinfo.value.message
    assert fake_email.sent == []


def test_issue_delivery_failure_keeps_code(service, fake_db, fake_email, settings, pending_registration):
    fake_email.fail_for.add('gr100@inst.edu')
    with pytest.raises(DeliveryFailure) as excinfo:
        service.issue(pending_registration.registration_id, 'GR100')

    assert excinfo.value.status_code == 502
    assert settings.SUPPORT_CONTACT in excinfo.value.message
    assert 'mailbox rejected' in excinfo.value.message
    assert fake_db.latest_otp(pending_registration.registration_id, 'GR100') is not None


def test_verify_wrong_code(service, pending_registration):
    rid = pending_registration.registration_id
    service.issue(rid, 'GR100')
    with pytest.raises(InvalidOtp):
        service.verify(rid, 'GR100', '99999x')


def test_verify_expired_code(service, fake_db, pending_registration):
    rid = pending_registration.registration_id
    issued_at = datetime(2024, 3, 1, 10, 0, 0)
    service.issue(rid, 'GR100', now=issued_at)
    code = fake_db.latest_otp(rid, 'GR100').otp_code

    with pytest.raises(InvalidOtp):
        service.verify(rid, 'GR100', code, now=issued_at + timedelta(minutes=10, seconds=1))


def test_verify_accepts_code_at_exact_expiry(service, fake_db, pending_registration):
    rid = pending_registration.registration_id
    issued_at = datetime(2024, 3, 1, 10, 0, 0)
    service.issue(rid, 'GR100', now=issued_at)
    code = fake_db.latest_otp(rid, 'GR100').otp_code

    assert service.verify(rid, 'GR100', code, now=issued_at + timedelta(minutes=10)) is False
    assert service.participant_status(rid)['GR100'] is True


def test_verify_code_cannot_be_reused(service, fake_db, pending_registration):
    rid = pending_registration.registration_id
    service.issue(rid, 'GR100')
    code = fake_db.latest_otp(rid, 'GR100').otp_code

    assert service.verify(rid, 'GR100', code) is False
    with pytest.raises(InvalidOtp):
        service.verify(rid, 'GR100', code)


def test_verify_code_bound_to_participant(service, fake_db, pending_registration):
    rid = pending_registration.registration_id
    service.issue(rid, 'GR100')
    code = fake_db.latest_otp(rid, 'GR100').otp_code

    with pytest.raises(InvalidOtp):
        service.verify(rid, 'GR200', code)


def test_all_participants_verified_confirms(service, fake_db, pending_registration):
    rid = pending_registration.registration_id
    for gr in ('GR100', 'GR200'):
        service.issue(rid, gr)

    first = service.verify(rid, 'GR100', fake_db.latest_otp(rid, 'GR100').otp_code)
    assert first is False
    assert service.participant_status(rid) == {'GR100': True, 'GR200': False}

    second = service.verify(rid, 'GR200', fake_db.latest_otp(rid, 'GR200').otp_code)
    assert second is True
    registration = fake_db.get_registration_by_id(rid)
    assert registration.is_confirmed
    assert registration.verified
    assert registration.team_leader_verified
    assert registration.team_members[0].verified
