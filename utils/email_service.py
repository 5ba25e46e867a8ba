#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
邮件服务
统一为 send(to, subject, html_body) -> (ok, message)，报名流程只依赖这一接口
"""

import logging
import requests
from flask import current_app
from flask_mail import Mail, Message

from config import get_config

logger = logging.getLogger(__name__)


class EmailService:
    """邮件服务基类"""

    def __init__(self, sender):
        self.sender = sender

    def send(self, to, subject, html_body):
        raise NotImplementedError


class DemoEmailProvider(EmailService):
    """
    演示用邮件服务商（开发测试用）
    不实际发送，只写日志
    """

    def send(self, to, subject, html_body):
        logger.info(f"【演示模式】发送邮件到 {to}: {subject}")
        logger.debug(html_body)
        return True, 'Email logged (demo mode)'


class ResendEmailProvider(EmailService):
    """
    Resend 事务邮件 HTTP API
    文档: https://resend.com/docs/api-reference/emails/send-email
    """

    endpoint = 'https://api.resend.com/emails'

    def __init__(self, api_key, sender, timeout=10):
        super().__init__(sender)
        self.api_key = api_key
        self.timeout = timeout

    def send(self, to, subject, html_body):
        try:
            response = requests.post(
                self.endpoint,
                headers={
                    'Authorization': f'Bearer {self.api_key}',
                    'Content-Type': 'application/json'
                },
                json={
                    'from': self.sender,
                    'to': [to],
                    'subject': subject,
                    'html': html_body
                },
                timeout=self.timeout
            )
        except requests.RequestException as e:
            logger.error(f"Resend 请求失败 {to}: {e}")
            return False, 'Email service unreachable'

        if response.status_code >= 400:
            try:
                detail = response.json().get('message')
            except ValueError:
                detail = None
            logger.error(f"Resend 发送失败 {to}: HTTP {response.status_code} {detail or response.text}")
            return False, detail or f'Email service returned HTTP {response.status_code}'

        email_id = None
        try:
            email_id = response.json().get('id')
        except ValueError:
            pass
        logger.info(f"Resend 发送成功: to={to}, id={email_id}")
        return True, 'Email sent'


class SMTPEmailProvider(EmailService):
    """SMTP 发送（Flask-Mail，需在应用上下文中调用）"""

    def send(self, to, subject, html_body):
        try:
            mail = Mail(current_app)
            msg = Message(
                subject=subject,
                sender=self.sender,
                recipients=[to],
                html=html_body
            )
            mail.send(msg)
            logger.info(f"SMTP 邮件发送成功: {to}")
            return True, 'Email sent'
        except Exception as e:
            logger.error(f"SMTP 邮件发送失败 {to}: {e}")
            return False, 'Email delivery failed'


def render_otp_email(student_name, otp_code, expire_minutes, system_name):
    """验证码邮件 HTML"""
    return f"""
        <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px;">
          <h1 style="color: #1e40af; text-align: center;">{system_name}</h1>
          <div style="background-color: #1e40af; padding: 24px; border-radius: 10px; text-align: center;">
            <h2 style="color: white; margin: 0 0 10px 0;">Your Verification Code</h2>
            <span style="font-size: 32px; font-weight: bold; color: white; letter-spacing: 3px;">{otp_code}</span>
            <p style="color: #e5e7eb; font-size: 14px;">Valid for {expire_minutes} minutes</p>
          </div>
          <p><strong>Dear {student_name},</strong></p>
          <p>Please use the above verification code to complete your event registration.</p>
          <p style="color: #6b7280; font-size: 14px;">If you didn't request this registration, please ignore this email.</p>
        </div>
    """


def render_verification_link_email(name, event_name, link, expire_hours, system_name):
    """邮件链接验证 HTML"""
    return f"""
        <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px;">
          <h1 style="color: #1e40af; text-align: center;">{system_name}</h1>
          <p><strong>Dear {name},</strong></p>
          <p>You have been added to a team registration for <strong>{event_name}</strong>.</p>
          <p>Please confirm your participation by opening the link below within {expire_hours} hours:</p>
          <p style="text-align: center;"><a href="{link}">{link}</a></p>
          <p style="color: #6b7280; font-size: 14px;">If you did not expect this email, please ignore it.</p>
        </div>
    """


def get_email_provider(settings=None):
    """
    获取邮件服务提供商

    - demo: 演示模式（开发测试）
    - resend: Resend HTTP API
    - smtp: Flask-Mail
    """
    settings = settings or get_config()
    provider_type = (settings.EMAIL_PROVIDER or 'demo').lower()

    if provider_type == 'resend':
        if settings.RESEND_API_KEY:
            return ResendEmailProvider(settings.RESEND_API_KEY, settings.EMAIL_FROM, settings.EMAIL_HTTP_TIMEOUT)
        logger.warning("RESEND_API_KEY 未配置，使用演示模式")
        return DemoEmailProvider(settings.EMAIL_FROM)

    if provider_type == 'smtp':
        if settings.MAIL_SERVER:
            return SMTPEmailProvider(settings.MAIL_DEFAULT_SENDER)
        logger.warning("MAIL_SERVER 未配置，使用演示模式")
        return DemoEmailProvider(settings.EMAIL_FROM)

    return DemoEmailProvider(settings.EMAIL_FROM)


# 创建全局邮件服务实例
email_provider = get_email_provider()
