#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
社团活动报名系统 - 管理员认证与会话管理模块
"""

import logging
import secrets
from datetime import datetime, timedelta

from config import get_config
from database import DatabaseManager
from models import AdminSession
from utils.helpers import verify_password

logger = logging.getLogger(__name__)


class AdminManager:
    """管理员管理器 - 会话保存在 admin_sessions 表中"""

    def __init__(self, db_manager=None, settings=None):
        self.settings = settings or get_config()
        self.db_manager = db_manager or DatabaseManager(self.settings)

    def authenticate(self, username, password):
        """验证管理员账号密码，成功返回 Admin，否则 None"""
        admin = self.db_manager.get_admin_by_username((username or '').strip())
        if not admin or not verify_password(password or '', admin.password_hash):
            logger.warning(f"管理员登录失败: {username}")
            return None
        return admin

    def create_session(self, admin, now=None):
        now = now or datetime.now()
        admin_session = AdminSession(
            session_token=secrets.token_hex(32),
            admin_id=admin.admin_id,
            created_at=now,
            expires_at=now + timedelta(hours=self.settings.ADMIN_SESSION_LIFETIME_HOURS)
        )
        self.db_manager.create_admin_session(admin_session)
        logger.info(f"管理员 {admin.username} 登录成功，会话有效期至 {admin_session.expires_at}")
        return admin_session

    def login(self, username, password):
        """登录成功返回新会话，否则 None"""
        admin = self.authenticate(username, password)
        if not admin:
            return None
        now = datetime.now()
        purged = self.db_manager.delete_expired_admin_sessions(now)
        if purged:
            logger.info(f"清理过期管理员会话 {purged} 条")
        return self.create_session(admin, now=now)

    def validate_session(self, session_token, now=None):
        """会话有效返回 AdminSession；过期的会话顺便删除"""
        if not session_token:
            return None
        admin_session = self.db_manager.get_admin_session(session_token)
        if not admin_session:
            return None
        if admin_session.is_expired(now):
            self.db_manager.delete_admin_session(session_token)
            logger.info("管理员会话已过期")
            return None
        return admin_session

    def revoke_session(self, session_token):
        if not session_token:
            return False
        return self.db_manager.delete_admin_session(session_token)


admin_manager = AdminManager()
