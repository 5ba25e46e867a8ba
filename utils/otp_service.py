#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
邮箱验证码服务
负责验证码的生成、保存、发送与校验
"""

import logging
import re
import secrets
from datetime import datetime, timedelta

from mysql.connector import Error

from models import OtpVerification
from utils.email_service import render_otp_email
from utils.errors import StudentNotFound, DeliveryFailure, InvalidOtp, IssuanceFailure

logger = logging.getLogger(__name__)

OTP_PATTERN = re.compile(r'^\d{6}$')


class OtpService:
    """验证码发放与校验"""

    def __init__(self, db_manager, email_provider, settings):
        self.db_manager = db_manager
        self.email_provider = email_provider
        self.settings = settings

    @staticmethod
    def generate_code():
        """000000-999999 的六位数字（保留前导零）"""
        return f"{secrets.randbelow(1000000):06d}"

    def issue(self, registration_id, gr_number, now=None):
        """
        为报名中的某个参与者发放验证码

        Returns:
            dict: 发送结果（不包含验证码）

        Raises:
            StudentNotFound: 学号不在名录中
            IssuanceFailure: 验证码记录保存失败
            DeliveryFailure: 邮件发送失败（验证码记录保留有效）
        """
        student = self.db_manager.get_student_by_gr(gr_number)
        if not student:
            raise StudentNotFound(gr_number)

        now = now or datetime.now()
        otp = OtpVerification(
            registration_id=registration_id,
            gr_number=gr_number,
            otp_code=self.generate_code(),
            created_at=now,
            expires_at=now + timedelta(minutes=self.settings.OTP_EXPIRE_MINUTES),
            verified=False
        )
        # 保存失败时不会尝试发送
        try:
            self.db_manager.create_otp_verification(otp)
        except Error as e:
            logger.error(f"验证码保存失败: registration_id={registration_id}, gr={gr_number}, 错误: {e}")
            raise IssuanceFailure(gr_number, self.settings.SUPPORT_CONTACT) from e

        html_body = render_otp_email(
            student.name, otp.otp_code, self.settings.OTP_EXPIRE_MINUTES, self.settings.SYSTEM_NAME
        )
        ok, message = self.email_provider.send(
            student.email,
            f"{self.settings.SYSTEM_NAME} - OTP Verification",
            html_body
        )
        if not ok:
            logger.warning(f"验证码邮件发送失败: registration_id={registration_id}, gr={gr_number}, 原因: {message}")
            raise DeliveryFailure(gr_number, message, self.settings.SUPPORT_CONTACT)

        logger.info(f"验证码已发送: registration_id={registration_id}, gr={gr_number}")
        return {
            'gr_number': gr_number,
            'name': student.name,
            'email': student.email,
            'expires_at': otp.expires_at.isoformat()
        }

    def verify(self, registration_id, gr_number, code, now=None):
        """
        校验验证码并在全部参与者验证后确认报名

        Returns:
            bool: 是否全部参与者都已验证

        Raises:
            InvalidOtp: 验证码错误、过期或已使用
        """
        code = (code or '').strip()
        if not OTP_PATTERN.match(code):
            raise InvalidOtp()

        now = now or datetime.now()
        otp = self.db_manager.find_valid_otp(registration_id, gr_number, code, now)
        if not otp:
            logger.info(f"验证码无效: registration_id={registration_id}, gr={gr_number}")
            raise InvalidOtp()

        # 并发提交时只有一次能完成标记
        if not self.db_manager.mark_otp_verified(otp.otp_id):
            raise InvalidOtp()

        self.db_manager.mark_participant_verified(registration_id, gr_number=gr_number)

        status = self.participant_status(registration_id)
        all_verified = bool(status) and all(status.values())
        if all_verified:
            self.db_manager.mark_registration_confirmed(registration_id)
            logger.info(f"报名全部参与者验证完成: registration_id={registration_id}")

        return all_verified

    def participant_status(self, registration_id):
        """{学号: 是否已有已使用的验证码}，按队内顺序"""
        participants = self.db_manager.get_registration_participants(registration_id)
        verified_grs = {
            otp.gr_number
            for otp in self.db_manager.get_otps_by_registration(registration_id)
            if otp.verified
        }
        return {p['gr_number']: p['gr_number'] in verified_grs for p in participants}
