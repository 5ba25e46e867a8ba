#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
社团活动报名系统 - 数据库模型定义
"""

import json
from datetime import datetime
from enum import Enum


class RegistrationStatus(Enum):
    """报名状态枚举"""
    PENDING = 'pending'          # 待验证
    CONFIRMED = 'confirmed'      # 已确认


class RegistrationType(Enum):
    """报名方式枚举"""
    GR_OTP = 'gr_otp'            # 学号 + 邮箱验证码
    DIRECT = 'direct'            # 表单直接填写


def _iso(value):
    return value.isoformat() if value else None


class Student:
    """学生名录模型"""
    def __init__(self, gr_number=None, name=None, email=None, class_name=None,
                 semester=None, created_at=None, updated_at=None):
        self.gr_number = gr_number
        self.name = name
        self.email = email
        self.class_name = class_name
        self.semester = semester
        self.created_at = created_at or datetime.now()
        self.updated_at = updated_at or datetime.now()

    def to_dict(self):
        """转换为字典"""
        return {
            'gr_number': self.gr_number,
            'name': self.name,
            'email': self.email,
            'class': self.class_name,
            'semester': self.semester,
            'created_at': _iso(self.created_at),
            'updated_at': _iso(self.updated_at)
        }


class Event:
    """活动模型"""
    def __init__(self, event_id=None, name=None, club_name=None, description=None,
                 poster_url=None, min_team_size=1, max_team_size=1,
                 created_at=None, updated_at=None):
        self.event_id = event_id
        self.name = name
        self.club_name = club_name
        self.description = description
        self.poster_url = poster_url
        self.min_team_size = min_team_size
        self.max_team_size = max_team_size
        self.created_at = created_at or datetime.now()
        self.updated_at = updated_at or datetime.now()

    @property
    def is_individual(self):
        """个人赛（最多 1 人）"""
        return self.max_team_size == 1

    def accepts_team_size(self, size):
        return self.min_team_size <= size <= self.max_team_size

    def to_dict(self):
        """转换为字典"""
        return {
            'event_id': self.event_id,
            'name': self.name,
            'club_name': self.club_name,
            'description': self.description,
            'poster_url': self.poster_url,
            'min_team_size': self.min_team_size,
            'max_team_size': self.max_team_size,
            'is_individual': self.is_individual,
            'created_at': _iso(self.created_at),
            'updated_at': _iso(self.updated_at)
        }


class TeamMember:
    """队员信息快照（提交时刻的拷贝，不随学生名录变化）"""
    def __init__(self, name=None, enrollment=None, email=None, department=None,
                 program=None, semester=None, verified=False):
        self.name = name
        self.enrollment = enrollment
        self.email = email
        self.department = department
        self.program = program
        self.semester = semester
        self.verified = bool(verified)

    @classmethod
    def from_student(cls, student, program):
        return cls(
            name=student.name,
            enrollment=student.gr_number,
            email=student.email,
            department=student.class_name,
            program=program,
            semester=student.semester,
            verified=False
        )

    @classmethod
    def from_dict(cls, data):
        return cls(
            name=data.get('name'),
            enrollment=data.get('enrollment'),
            email=data.get('email'),
            department=data.get('department'),
            program=data.get('program'),
            semester=data.get('semester'),
            verified=data.get('verified', False)
        )

    def to_dict(self):
        """转换为字典"""
        return {
            'name': self.name,
            'enrollment': self.enrollment,
            'email': self.email,
            'department': self.department,
            'program': self.program,
            'semester': self.semester,
            'verified': self.verified
        }


class Registration:
    """报名模型"""
    def __init__(self, registration_id=None, event_id=None,
                 registration_type=RegistrationType.GR_OTP,
                 team_leader_gr=None, team_leader_name=None, team_leader_enrollment=None,
                 team_leader_email=None, team_leader_department=None,
                 team_leader_program=None, team_leader_semester=None,
                 team_leader_verified=False, team_members=None,
                 registration_status=RegistrationStatus.PENDING, verified=False,
                 created_at=None, confirmed_at=None, event_name=None, club_name=None):
        self.registration_id = registration_id
        self.event_id = event_id
        self.registration_type = registration_type if isinstance(registration_type, RegistrationType) \
            else RegistrationType(registration_type)
        self.team_leader_gr = team_leader_gr
        self.team_leader_name = team_leader_name
        self.team_leader_enrollment = team_leader_enrollment
        self.team_leader_email = team_leader_email
        self.team_leader_department = team_leader_department
        self.team_leader_program = team_leader_program
        self.team_leader_semester = team_leader_semester
        self.team_leader_verified = bool(team_leader_verified)

        # team_members 在库中以 JSON 字符串保存
        if isinstance(team_members, str):
            team_members = json.loads(team_members or '[]')
        self.team_members = [
            m if isinstance(m, TeamMember) else TeamMember.from_dict(m)
            for m in (team_members or [])
        ]

        self.registration_status = registration_status if isinstance(registration_status, RegistrationStatus) \
            else RegistrationStatus(registration_status or RegistrationStatus.PENDING.value)
        self.verified = bool(verified)
        self.created_at = created_at or datetime.now()
        self.confirmed_at = confirmed_at
        # 列表/导出时由 JOIN events 带出
        self.event_name = event_name
        self.club_name = club_name

    @property
    def is_confirmed(self):
        return self.registration_status == RegistrationStatus.CONFIRMED

    @property
    def team_size(self):
        return 1 + len(self.team_members)

    @property
    def participant_grs(self):
        """领队 + 队员学号（按提交顺序）"""
        grs = [self.team_leader_gr] if self.team_leader_gr else []
        grs.extend(m.enrollment for m in self.team_members if m.enrollment)
        return grs

    def team_members_json(self):
        return json.dumps([m.to_dict() for m in self.team_members], ensure_ascii=False)

    def mark_participant_verified(self, gr_number=None, email=None):
        """在快照中标记某个参与者已验证（按学号或邮箱），返回是否命中"""
        def matches(enrollment, address):
            if gr_number is not None:
                return enrollment == gr_number
            return (address or "").lower() == (email or "").lower()

        if matches(self.team_leader_gr or self.team_leader_enrollment, self.team_leader_email):
            self.team_leader_verified = True
            return True
        for member in self.team_members:
            if not member.verified and matches(member.enrollment, member.email):
                member.verified = True
                return True
        return False

    def to_dict(self):
        """转换为字典"""
        return {
            'registration_id': self.registration_id,
            'event_id': self.event_id,
            'registration_type': self.registration_type.value,
            'team_leader_gr': self.team_leader_gr,
            'team_leader_name': self.team_leader_name,
            'team_leader_enrollment': self.team_leader_enrollment,
            'team_leader_email': self.team_leader_email,
            'team_leader_department': self.team_leader_department,
            'team_leader_program': self.team_leader_program,
            'team_leader_semester': self.team_leader_semester,
            'team_leader_verified': self.team_leader_verified,
            'team_members': [m.to_dict() for m in self.team_members],
            'team_size': self.team_size,
            'registration_status': self.registration_status.value,
            'verified': self.verified,
            'created_at': _iso(self.created_at),
            'confirmed_at': _iso(self.confirmed_at),
            'event_name': self.event_name,
            'club_name': self.club_name
        }


class OtpVerification:
    """邮箱验证码记录模型"""
    def __init__(self, otp_id=None, registration_id=None, gr_number=None, otp_code=None,
                 created_at=None, expires_at=None, verified=False):
        self.otp_id = otp_id
        self.registration_id = registration_id
        self.gr_number = gr_number
        self.otp_code = otp_code
        self.created_at = created_at or datetime.now()
        self.expires_at = expires_at
        self.verified = bool(verified)

    def is_expired(self, now=None):
        now = now or datetime.now()
        return self.expires_at is None or self.expires_at < now

    def to_dict(self):
        """转换为字典（不包含验证码本身）"""
        return {
            'otp_id': self.otp_id,
            'registration_id': self.registration_id,
            'gr_number': self.gr_number,
            'created_at': _iso(self.created_at),
            'expires_at': _iso(self.expires_at),
            'verified': self.verified
        }


class VerificationToken:
    """邮件链接验证令牌模型（直接填写的团体报名使用）"""
    def __init__(self, token_id=None, registration_id=None, email=None, token=None,
                 created_at=None, expires_at=None, verified=False, verified_at=None):
        self.token_id = token_id
        self.registration_id = registration_id
        self.email = email
        self.token = token
        self.created_at = created_at or datetime.now()
        self.expires_at = expires_at
        self.verified = bool(verified)
        self.verified_at = verified_at


class Admin:
    """管理员模型"""
    def __init__(self, admin_id=None, username=None, password_hash=None, created_at=None):
        self.admin_id = admin_id
        self.username = username
        self.password_hash = password_hash
        self.created_at = created_at or datetime.now()

    def to_dict(self):
        return {
            'admin_id': self.admin_id,
            'username': self.username,
            'created_at': _iso(self.created_at)
        }


class AdminSession:
    """管理员会话模型"""
    def __init__(self, session_token=None, admin_id=None, created_at=None, expires_at=None):
        self.session_token = session_token
        self.admin_id = admin_id
        self.created_at = created_at or datetime.now()
        self.expires_at = expires_at

    def is_expired(self, now=None):
        now = now or datetime.now()
        return self.expires_at is None or self.expires_at <= now


# 数据库表结构定义（按依赖顺序）
DATABASE_SCHEMA = {
    'students': '''
        CREATE TABLE IF NOT EXISTS students (
            gr_number VARCHAR(50) PRIMARY KEY COMMENT '学号/GR号',
            name VARCHAR(200) NOT NULL COMMENT '姓名',
            email VARCHAR(255) NOT NULL COMMENT '学校邮箱',
            class_name VARCHAR(100) NOT NULL COMMENT '班级',
            semester TINYINT NOT NULL COMMENT '学期(1-8)',
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP ON UPDATE CURRENT_TIMESTAMP,
            INDEX idx_email (email)
        ) ENGINE=InnoDB DEFAULT CHARSET=utf8mb4 COLLATE=utf8mb4_unicode_ci COMMENT='学生名录表（批量导入）';
    ''',
    'events': '''
        CREATE TABLE IF NOT EXISTS events (
            event_id INT AUTO_INCREMENT PRIMARY KEY,
            name VARCHAR(200) NOT NULL COMMENT '活动名称',
            club_name VARCHAR(200) NOT NULL COMMENT '主办社团',
            description TEXT COMMENT '活动说明',
            poster_url VARCHAR(500) DEFAULT NULL COMMENT '海报地址',
            min_team_size INT NOT NULL DEFAULT 1 COMMENT '最少人数',
            max_team_size INT NOT NULL DEFAULT 1 COMMENT '最多人数',
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP ON UPDATE CURRENT_TIMESTAMP,
            INDEX idx_club_name (club_name),
            INDEX idx_created_at (created_at)
        ) ENGINE=InnoDB DEFAULT CHARSET=utf8mb4 COLLATE=utf8mb4_unicode_ci COMMENT='活动表';
    ''',
    'registrations': '''
        CREATE TABLE IF NOT EXISTS registrations (
            registration_id INT AUTO_INCREMENT PRIMARY KEY,
            event_id INT NOT NULL COMMENT '活动ID',
            registration_type ENUM('gr_otp', 'direct') NOT NULL DEFAULT 'gr_otp' COMMENT '报名方式',
            team_leader_gr VARCHAR(50) DEFAULT NULL COMMENT '领队学号',
            team_leader_name VARCHAR(200) NOT NULL COMMENT '领队姓名',
            team_leader_enrollment VARCHAR(50) NOT NULL COMMENT '领队注册号',
            team_leader_email VARCHAR(255) NOT NULL COMMENT '领队邮箱',
            team_leader_department VARCHAR(100) NOT NULL COMMENT '领队院系',
            team_leader_program VARCHAR(100) NOT NULL COMMENT '领队专业',
            team_leader_semester TINYINT NOT NULL COMMENT '领队学期',
            team_leader_verified BOOLEAN DEFAULT FALSE COMMENT '领队是否已验证',
            team_members JSON COMMENT '队员快照',
            registration_status ENUM('pending', 'confirmed') NOT NULL DEFAULT 'pending' COMMENT '状态',
            verified BOOLEAN DEFAULT FALSE COMMENT '是否全部验证',
            created_at DATETIME DEFAULT CURRENT_TIMESTAMP COMMENT '报名时间',
            confirmed_at DATETIME NULL COMMENT '确认时间',
            FOREIGN KEY (event_id) REFERENCES events(event_id),
            INDEX idx_event_created (event_id, created_at),
            INDEX idx_event_leader_email (event_id, team_leader_email),
            INDEX idx_status (registration_status)
        ) ENGINE=InnoDB DEFAULT CHARSET=utf8mb4 COLLATE=utf8mb4_unicode_ci COMMENT='报名表';
    ''',
    'registration_participants': '''
        CREATE TABLE IF NOT EXISTS registration_participants (
            participant_id INT AUTO_INCREMENT PRIMARY KEY,
            registration_id INT NOT NULL COMMENT '报名ID',
            gr_number VARCHAR(50) NOT NULL COMMENT '学号',
            is_leader BOOLEAN NOT NULL DEFAULT FALSE COMMENT '是否领队',
            position INT NOT NULL DEFAULT 0 COMMENT '队内顺序',
            confirmed_key TINYINT NULL DEFAULT NULL COMMENT '已确认时为1，待验证时为NULL',
            FOREIGN KEY (registration_id) REFERENCES registrations(registration_id) ON DELETE CASCADE,
            UNIQUE KEY uniq_registration_gr (registration_id, gr_number),
            UNIQUE KEY uniq_confirmed_gr (gr_number, confirmed_key)
        ) ENGINE=InnoDB DEFAULT CHARSET=utf8mb4 COLLATE=utf8mb4_unicode_ci COMMENT='报名参与者表（学号唯一确认约束）';
    ''',
    'otp_verifications': '''
        CREATE TABLE IF NOT EXISTS otp_verifications (
            otp_id INT AUTO_INCREMENT PRIMARY KEY,
            registration_id INT NOT NULL COMMENT '报名ID',
            gr_number VARCHAR(50) NOT NULL COMMENT '学号',
            otp_code CHAR(6) NOT NULL COMMENT '验证码',
            created_at DATETIME NOT NULL COMMENT '发放时间',
            expires_at DATETIME NOT NULL COMMENT '过期时间',
            verified BOOLEAN NOT NULL DEFAULT FALSE COMMENT '是否已使用',
            FOREIGN KEY (registration_id) REFERENCES registrations(registration_id) ON DELETE CASCADE,
            INDEX idx_registration_gr (registration_id, gr_number),
            INDEX idx_lookup (registration_id, gr_number, otp_code, verified)
        ) ENGINE=InnoDB DEFAULT CHARSET=utf8mb4 COLLATE=utf8mb4_unicode_ci COMMENT='邮箱验证码表';
    ''',
    'verification_tokens': '''
        CREATE TABLE IF NOT EXISTS verification_tokens (
            token_id INT AUTO_INCREMENT PRIMARY KEY,
            registration_id INT NOT NULL COMMENT '报名ID',
            email VARCHAR(255) NOT NULL COMMENT '邮箱',
            token VARCHAR(100) NOT NULL UNIQUE COMMENT '令牌',
            created_at DATETIME NOT NULL COMMENT '创建时间',
            expires_at DATETIME NOT NULL COMMENT '过期时间',
            verified BOOLEAN NOT NULL DEFAULT FALSE COMMENT '是否已验证',
            verified_at DATETIME NULL COMMENT '验证时间',
            FOREIGN KEY (registration_id) REFERENCES registrations(registration_id) ON DELETE CASCADE,
            INDEX idx_registration (registration_id)
        ) ENGINE=InnoDB DEFAULT CHARSET=utf8mb4 COLLATE=utf8mb4_unicode_ci COMMENT='邮件链接验证表';
    ''',
    'admins': '''
        CREATE TABLE IF NOT EXISTS admins (
            admin_id INT AUTO_INCREMENT PRIMARY KEY,
            username VARCHAR(100) NOT NULL UNIQUE COMMENT '用户名',
            password_hash VARCHAR(128) NOT NULL COMMENT '密码哈希(hex)',
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        ) ENGINE=InnoDB DEFAULT CHARSET=utf8mb4 COLLATE=utf8mb4_unicode_ci COMMENT='管理员表';
    ''',
    'admin_sessions': '''
        CREATE TABLE IF NOT EXISTS admin_sessions (
            session_token CHAR(64) PRIMARY KEY,
            admin_id INT NOT NULL COMMENT '管理员ID',
            created_at DATETIME NOT NULL COMMENT '创建时间',
            expires_at DATETIME NOT NULL COMMENT '过期时间',
            FOREIGN KEY (admin_id) REFERENCES admins(admin_id) ON DELETE CASCADE,
            INDEX idx_expires_at (expires_at)
        ) ENGINE=InnoDB DEFAULT CHARSET=utf8mb4 COLLATE=utf8mb4_unicode_ci COMMENT='管理员会话表';
    ''',
}
