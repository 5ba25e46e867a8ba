#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
社团活动报名系统 - 报名流程管理模块

两条报名路径:
1. 学号 + 邮箱验证码: 按学号从名录组队，为每位参与者发送验证码，全部验证后确认
2. 表单直接填写: 个人赛直接确认；团体赛给每位参与者发送邮件链接，全部点击后确认
"""

import logging
import secrets
from datetime import datetime, timedelta

from config import get_config
from database import DatabaseManager
from models import (
    Registration, RegistrationStatus, RegistrationType, TeamMember, VerificationToken
)
from utils.email_service import email_provider as default_email_provider, render_verification_link_email
from utils.errors import (
    ValidationError, EventNotFound, RegistrationNotFound, AlreadyRegistered,
    StudentNotFound, InvalidToken, DeliveryFailure, IssuanceFailure
)
from utils.helpers import validate_institution_email, parse_semester
from utils.otp_service import OtpService

logger = logging.getLogger(__name__)

DIRECT_REQUIRED_FIELDS = ('name', 'enrollment', 'email', 'program')


def _clean(value):
    return str(value).strip() if value is not None else ''


class RegistrationManager:
    """报名流程管理器"""

    def __init__(self, db_manager=None, email_provider=None, settings=None):
        self.settings = settings or get_config()
        self.db_manager = db_manager or DatabaseManager(self.settings)
        self.email_provider = email_provider or default_email_provider
        self.otp_service = OtpService(self.db_manager, self.email_provider, self.settings)

    def _get_event(self, event_id):
        try:
            event_id = int(event_id)
        except (TypeError, ValueError):
            raise ValidationError('event_id must be a number')
        event = self.db_manager.get_event_by_id(event_id)
        if not event:
            raise EventNotFound(event_id)
        return event

    def _get_registration(self, registration_id):
        registration = self.db_manager.get_registration_by_id(registration_id)
        if not registration:
            raise RegistrationNotFound(registration_id)
        return registration

    @staticmethod
    def _check_team_size(event, team_size):
        if not event.accepts_team_size(team_size):
            if event.min_team_size == event.max_team_size:
                expected = f'exactly {event.min_team_size}'
            else:
                expected = f'between {event.min_team_size} and {event.max_team_size}'
            raise ValidationError(
                f'Team size must be {expected} members (got {team_size})',
                team_size=team_size
            )

    # ==================== 学号 + 验证码 ====================

    def submit(self, event_id, leader_gr, member_grs=None):
        """
        提交报名并为每位参与者发送验证码

        Returns:
            dict: registration（快照）、otp_results（逐人发送结果）、all_sent
        """
        leader_gr = _clean(leader_gr)
        if not leader_gr:
            raise ValidationError('Team leader GR number is required')

        members = [_clean(gr) for gr in (member_grs or [])]
        members = [gr for gr in members if gr]

        identifiers = [leader_gr] + members
        if len(set(identifiers)) != len(identifiers):
            raise ValidationError('The same GR number appears more than once in the team')

        event = self._get_event(event_id)
        self._check_team_size(event, len(identifiers))

        # 重复报名检查（按提交顺序，第一个命中即报错）
        for gr in identifiers:
            if self.db_manager.find_confirmed_registration_for_gr(gr):
                raise AlreadyRegistered(gr)

        students = []
        for gr in identifiers:
            student = self.db_manager.get_student_by_gr(gr)
            if not student:
                raise StudentNotFound(gr)
            students.append(student)

        program = self.settings.DEFAULT_PROGRAM
        leader = students[0]
        registration = Registration(
            event_id=event.event_id,
            registration_type=RegistrationType.GR_OTP,
            team_leader_gr=leader.gr_number,
            team_leader_name=leader.name,
            team_leader_enrollment=leader.gr_number,
            team_leader_email=leader.email,
            team_leader_department=leader.class_name,
            team_leader_program=program,
            team_leader_semester=leader.semester,
            team_leader_verified=False,
            team_members=[TeamMember.from_student(s, program) for s in students[1:]],
            registration_status=RegistrationStatus.PENDING,
            verified=False,
            created_at=datetime.now()
        )
        self.db_manager.create_registration(registration)
        logger.info(
            f"报名已创建待验证: registration_id={registration.registration_id}, "
            f"event_id={event.event_id}, 人数={registration.team_size}"
        )

        # 逐人发送，相互独立；失败不回滚报名
        otp_results = []
        for gr in identifiers:
            otp_results.append(self._issue_and_report(registration.registration_id, gr))

        return {
            'registration': registration.to_dict(),
            'otp_results': otp_results,
            'all_sent': all(r['sent'] for r in otp_results)
        }

    def _issue_and_report(self, registration_id, gr_number):
        try:
            info = self.otp_service.issue(registration_id, gr_number)
            return {
                'gr_number': gr_number,
                'sent': True,
                'email': info['email'],
                'message': 'OTP sent to your college email'
            }
        except (DeliveryFailure, IssuanceFailure, StudentNotFound) as e:
            return {'gr_number': gr_number, 'sent': False, 'message': e.message}

    def submit_verification_code(self, registration_id, gr_number, code):
        """提交验证码；返回是否全部验证（此时报名已确认）"""
        registration = self._get_registration(registration_id)
        if registration.registration_type != RegistrationType.GR_OTP:
            raise ValidationError('This registration does not use OTP verification')
        gr_number = _clean(gr_number)
        if gr_number not in registration.participant_grs:
            raise ValidationError(f'{gr_number} is not part of this registration')

        all_verified = self.otp_service.verify(registration.registration_id, gr_number, code)
        return {
            'registration_id': registration.registration_id,
            'gr_number': gr_number,
            'all_verified': all_verified,
            'registration_status': (
                RegistrationStatus.CONFIRMED.value if all_verified else registration.registration_status.value
            )
        }

    def reissue_otp(self, registration_id, gr_number):
        """为尚未验证的参与者重新发送验证码，旧码立即作废"""
        registration = self._get_registration(registration_id)
        if registration.registration_type != RegistrationType.GR_OTP:
            raise ValidationError('This registration does not use OTP verification')
        if registration.is_confirmed:
            raise ValidationError('This registration is already confirmed')

        gr_number = _clean(gr_number)
        status = self.otp_service.participant_status(registration.registration_id)
        if gr_number not in status:
            raise ValidationError(f'{gr_number} is not part of this registration')
        if status[gr_number]:
            raise ValidationError(f'{gr_number} has already been verified')

        now = datetime.now()
        expired = self.db_manager.expire_pending_otps(registration.registration_id, gr_number, now)
        logger.info(f"重新发送验证码: registration_id={registration_id}, gr={gr_number}, 作废旧码 {expired} 条")
        return self.otp_service.issue(registration.registration_id, gr_number)

    def get_status(self, registration_id):
        """报名状态及每位参与者的验证情况"""
        registration = self._get_registration(registration_id)
        if registration.registration_type == RegistrationType.GR_OTP:
            status = self.otp_service.participant_status(registration.registration_id)
            participants = [{'gr_number': gr, 'verified': verified} for gr, verified in status.items()]
        else:
            tokens = self.db_manager.get_tokens_by_registration(registration.registration_id)
            if tokens:
                participants = [{'email': t.email, 'verified': t.verified} for t in tokens]
            else:
                participants = [{'email': registration.team_leader_email, 'verified': registration.verified}]

        return {
            'registration_id': registration.registration_id,
            'event_id': registration.event_id,
            'registration_type': registration.registration_type.value,
            'registration_status': registration.registration_status.value,
            'verified': registration.verified,
            'participants': participants
        }

    # ==================== 表单直接填写 ====================

    def _build_direct_member(self, data, label):
        if not isinstance(data, dict):
            raise ValidationError(f'{label} details are required')

        missing = [field for field in DIRECT_REQUIRED_FIELDS if not _clean(data.get(field))]
        if missing:
            raise ValidationError(f'{label}: missing {", ".join(missing)}')

        email = _clean(data['email'])
        domain = self.settings.INSTITUTION_EMAIL_DOMAIN
        if not validate_institution_email(email, domain):
            raise ValidationError(f'{label}: email must be a @{domain} address')

        raw_semester = data.get('semester')
        semester = 1 if raw_semester in (None, '') else parse_semester(raw_semester)
        if semester is None:
            raise ValidationError(f'{label}: semester must be between 1 and 8')

        return TeamMember(
            name=_clean(data['name']),
            enrollment=_clean(data['enrollment']),
            email=email,
            department=_clean(data.get('department')) or self.settings.DEFAULT_DEPARTMENT,
            program=_clean(data['program']),
            semester=semester,
            verified=False
        )

    def register_direct(self, event_id, leader, members=None):
        """表单直接报名"""
        team_leader = self._build_direct_member(leader, 'Team leader')
        team_members = [
            self._build_direct_member(member, f'Team member {index}')
            for index, member in enumerate(members or [], start=1)
        ]

        emails = [team_leader.email.lower()] + [m.email.lower() for m in team_members]
        if len(set(emails)) != len(emails):
            raise ValidationError('Each team member must use a different email address')

        event = self._get_event(event_id)
        self._check_team_size(event, 1 + len(team_members))

        if self.db_manager.find_registration_by_leader_email(event.event_id, team_leader.email):
            raise AlreadyRegistered(
                team_leader.email,
                message=f'{team_leader.email} has already registered a team for this event'
            )

        now = datetime.now()
        individual = event.is_individual
        registration = Registration(
            event_id=event.event_id,
            registration_type=RegistrationType.DIRECT,
            team_leader_name=team_leader.name,
            team_leader_enrollment=team_leader.enrollment,
            team_leader_email=team_leader.email,
            team_leader_department=team_leader.department,
            team_leader_program=team_leader.program,
            team_leader_semester=team_leader.semester,
            team_leader_verified=individual,
            team_members=team_members,
            registration_status=RegistrationStatus.CONFIRMED if individual else RegistrationStatus.PENDING,
            verified=individual,
            created_at=now,
            confirmed_at=now if individual else None
        )
        self.db_manager.create_registration(registration)
        logger.info(
            f"直接报名已创建: registration_id={registration.registration_id}, "
            f"event_id={event.event_id}, 状态={registration.registration_status.value}"
        )

        email_results = []
        if not individual:
            participants = [team_leader] + team_members
            for participant in participants:
                email_results.append(self._send_verification_link(registration, event, participant, now))

        return {
            'registration': registration.to_dict(),
            'email_results': email_results
        }

    def _send_verification_link(self, registration, event, participant, now):
        token = VerificationToken(
            registration_id=registration.registration_id,
            email=participant.email,
            token=secrets.token_urlsafe(32),
            created_at=now,
            expires_at=now + timedelta(hours=self.settings.EMAIL_TOKEN_EXPIRE_HOURS),
            verified=False
        )
        self.db_manager.create_verification_token(token)

        link = f"{self.settings.PUBLIC_BASE_URL.rstrip('/')}/api/registrations/verify-email?token={token.token}"
        ok, message = self.email_provider.send(
            participant.email,
            f"{self.settings.SYSTEM_NAME} - Confirm your team registration",
            render_verification_link_email(
                participant.name, event.name, link,
                self.settings.EMAIL_TOKEN_EXPIRE_HOURS, self.settings.SYSTEM_NAME
            )
        )
        if not ok:
            logger.warning(f"验证链接邮件发送失败: registration_id={registration.registration_id}, email={participant.email}")
            message = (
                f'Could not send the verification email: {message}. '
                f'Please contact {self.settings.SUPPORT_CONTACT} to complete your registration.'
            )
        return {'email': participant.email, 'sent': ok, 'message': message}

    def verify_email_token(self, token_value):
        """邮件链接验证；全部参与者点击后确认报名"""
        token_value = _clean(token_value)
        if not token_value:
            raise InvalidToken()

        now = datetime.now()
        token = self.db_manager.get_verification_token(token_value)
        if not token or token.verified or token.expires_at < now:
            raise InvalidToken()
        if not self.db_manager.mark_token_verified(token.token_id, now):
            raise InvalidToken()

        self.db_manager.mark_participant_verified(token.registration_id, email=token.email)

        tokens = self.db_manager.get_tokens_by_registration(token.registration_id)
        all_verified = bool(tokens) and all(t.verified for t in tokens)
        if all_verified:
            self.db_manager.mark_registration_confirmed(token.registration_id)
            logger.info(f"直接报名全部参与者验证完成: registration_id={token.registration_id}")

        return {
            'registration_id': token.registration_id,
            'email': token.email,
            'all_verified': all_verified
        }


registration_manager = RegistrationManager()
