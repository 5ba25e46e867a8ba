#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
报名流程异常定义

每个异常携带 HTTP 状态码和机器可读的错误码，由应用级 errorhandler 统一转成 JSON。
"""


class RegistrationError(Exception):
    """报名流程异常基类"""
    status_code = 400
    error_code = 'registration_error'

    def __init__(self, message, status_code=None, error_code=None, **extra):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        if error_code is not None:
            self.error_code = error_code
        self.extra = extra

    def to_dict(self):
        payload = {
            'success': False,
            'error': self.error_code,
            'message': self.message
        }
        payload.update(self.extra)
        return payload


class ValidationError(RegistrationError):
    """字段缺失/格式错误/人数不符/邮箱域名不符"""
    status_code = 400
    error_code = 'validation_error'


class EventNotFound(RegistrationError):
    status_code = 404
    error_code = 'event_not_found'

    def __init__(self, event_id):
        super().__init__(f'Event {event_id} not found', event_id=event_id)


class RegistrationNotFound(RegistrationError):
    status_code = 404
    error_code = 'registration_not_found'

    def __init__(self, registration_id):
        super().__init__(f'Registration {registration_id} not found', registration_id=registration_id)


class AlreadyRegistered(RegistrationError):
    """学号已在某个已确认的报名中 / 同一活动领队邮箱已报名"""
    status_code = 409
    error_code = 'already_registered'

    def __init__(self, identifier, message=None):
        super().__init__(
            message or f'{identifier} is already registered for an event',
            identifier=identifier
        )


class StudentNotFound(RegistrationError):
    status_code = 404
    error_code = 'student_not_found'

    def __init__(self, gr_number):
        super().__init__(
            f'GR number {gr_number} was not found in the student directory',
            gr_number=gr_number
        )


class InvalidOtp(RegistrationError):
    """验证码错误、过期或已使用（不区分）"""
    status_code = 400
    error_code = 'invalid_otp'

    def __init__(self, message='Invalid or expired verification code'):
        super().__init__(message)


class InvalidToken(RegistrationError):
    status_code = 400
    error_code = 'invalid_token'

    def __init__(self, message='Invalid or expired verification link'):
        super().__init__(message)


class DeliveryFailure(RegistrationError):
    """邮件发送失败，附带线下联系方式"""
    status_code = 502
    error_code = 'delivery_failure'

    def __init__(self, gr_number, reason, support_contact):
        super().__init__(
            f'Could not send the verification email for {gr_number}: {reason}. '
            f'Please contact {support_contact} to complete your registration.',
            gr_number=gr_number
        )
        self.reason = reason


class IssuanceFailure(RegistrationError):
    """验证码记录保存失败（未发送邮件）"""
    status_code = 503
    error_code = 'issuance_failure'

    def __init__(self, gr_number, support_contact):
        super().__init__(
            f'Could not issue a verification code for {gr_number} right now. '
            f'Please request a new code or contact {support_contact} to complete your registration.',
            gr_number=gr_number
        )
