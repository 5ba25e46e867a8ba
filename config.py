#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
社团活动报名系统 - 配置文件
"""

import os
from datetime import timedelta
from dotenv import load_dotenv

# 加载环境变量
load_dotenv()


class Config:
    """应用配置类"""

    # Flask 基础配置
    SECRET_KEY = os.environ.get('SECRET_KEY')

    # 数据库配置
    DB_HOST = os.environ.get('DB_HOST') or 'localhost'
    DB_PORT = int(os.environ.get('DB_PORT') or 3306)
    DB_USER = os.environ.get('DB_USER') or 'club_portal'
    DB_PASSWORD = os.environ.get('DB_PASSWORD') or ''
    DB_NAME = os.environ.get('DB_NAME') or 'club_portal'
    # 数据库连接池配置
    DB_POOL_NAME = os.environ.get('DB_POOL_NAME') or 'club_portal_pool'
    DB_POOL_SIZE = int(os.environ.get('DB_POOL_SIZE') or 5)
    SLOW_QUERY_THRESHOLD_MS = int(os.environ.get('SLOW_QUERY_THRESHOLD_MS') or 50)
    # 启动时检查并创建表结构
    AUTO_INIT_DB = os.environ.get('AUTO_INIT_DB', 'true').lower() == 'true'

    # 服务器配置
    HOST = os.environ.get('HOST') or '0.0.0.0'
    PORT = int(os.environ.get('PORT') or 5000)
    DEBUG = os.environ.get('DEBUG', 'False').lower() == 'true'

    # Session 配置
    PERMANENT_SESSION_LIFETIME = timedelta(hours=12)
    SESSION_COOKIE_SECURE = False  # 生产环境应设为 True
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = 'Lax'

    # 文件上传配置
    UPLOAD_FOLDER = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'uploads')
    MAX_CONTENT_LENGTH = 16 * 1024 * 1024  # 16MB
    ROSTER_EXTENSIONS = {'xlsx', 'csv'}
    POSTER_EXTENSIONS = {'png', 'jpg', 'jpeg', 'webp'}

    # 报名规则
    INSTITUTION_EMAIL_DOMAIN = os.environ.get('INSTITUTION_EMAIL_DOMAIN') or 'marwadiuniversity.ac.in'
    OTP_EXPIRE_MINUTES = int(os.environ.get('OTP_EXPIRE_MINUTES') or 10)
    EMAIL_TOKEN_EXPIRE_HOURS = int(os.environ.get('EMAIL_TOKEN_EXPIRE_HOURS') or 24)
    DEFAULT_PROGRAM = os.environ.get('DEFAULT_PROGRAM') or 'Engineering'
    DEFAULT_DEPARTMENT = os.environ.get('DEFAULT_DEPARTMENT') or 'ICT'
    SUPPORT_CONTACT = os.environ.get('SUPPORT_CONTACT') or 'the ICT Department'
    PUBLIC_BASE_URL = os.environ.get('PUBLIC_BASE_URL') or 'http://localhost:5000'

    # 邮件配置
    # demo: 仅写日志; resend: 事务邮件 HTTP API; smtp: Flask-Mail
    EMAIL_PROVIDER = (os.environ.get('EMAIL_PROVIDER') or 'demo').lower()
    EMAIL_FROM = os.environ.get('EMAIL_FROM') or 'Club Events <noreply@marwadiuniversity.ac.in>'
    EMAIL_HTTP_TIMEOUT = int(os.environ.get('EMAIL_HTTP_TIMEOUT') or 10)
    RESEND_API_KEY = os.environ.get('RESEND_API_KEY')
    MAIL_SERVER = os.environ.get('MAIL_SERVER')
    MAIL_PORT = int(os.environ.get('MAIL_PORT') or 587)
    MAIL_USE_TLS = os.environ.get('MAIL_USE_TLS', 'true').lower() in ['true', 'on', '1']
    MAIL_USERNAME = os.environ.get('MAIL_USERNAME')
    MAIL_PASSWORD = os.environ.get('MAIL_PASSWORD')
    MAIL_DEFAULT_SENDER = os.environ.get('MAIL_DEFAULT_SENDER') or EMAIL_FROM

    # 管理员配置
    ADMIN_USERNAME = os.environ.get('ADMIN_USERNAME') or 'admin'
    ADMIN_PASSWORD = os.environ.get('ADMIN_PASSWORD')
    ADMIN_SESSION_LIFETIME_HOURS = int(os.environ.get('ADMIN_SESSION_LIFETIME_HOURS') or 12)

    # 导出配置
    EXPORT_DATE_FORMAT = os.environ.get('EXPORT_DATE_FORMAT') or '%d/%m/%Y'
    EXPORT_ALL_FILENAME = 'All Registrations'

    # 分页配置
    ITEMS_PER_PAGE = 20

    # 日志配置
    LOG_LEVEL = os.environ.get('LOG_LEVEL') or 'INFO'
    LOG_FILE = os.environ.get('LOG_FILE') or 'club_portal.log'

    # 系统配置
    SYSTEM_NAME = 'Club Event Registration Portal'
    SYSTEM_VERSION = '1.0.0'

    @classmethod
    def init_app(cls, app):
        """初始化应用配置"""
        # 确保上传目录存在
        os.makedirs(cls.UPLOAD_FOLDER, exist_ok=True)

        # 设置日志
        import logging
        handlers = [logging.StreamHandler()]
        if cls.LOG_FILE:
            handlers.append(logging.FileHandler(cls.LOG_FILE, encoding='utf-8'))
        logging.basicConfig(
            level=getattr(logging, cls.LOG_LEVEL),
            format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            handlers=handlers
        )


class DevelopmentConfig(Config):
    """开发环境配置"""
    DEBUG = True
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'club-portal-dev-secret-key'
    ADMIN_PASSWORD = os.environ.get('ADMIN_PASSWORD') or 'admin123'


class ProductionConfig(Config):
    """生产环境配置"""
    DEBUG = False
    SESSION_COOKIE_SECURE = True
    SECRET_KEY = os.environ.get('SECRET_KEY')

    # 生产环境数据库配置（从环境变量获取）
    DB_HOST = os.environ.get('PROD_DB_HOST') or Config.DB_HOST
    DB_USER = os.environ.get('PROD_DB_USER') or Config.DB_USER
    DB_PASSWORD = os.environ.get('PROD_DB_PASSWORD') or Config.DB_PASSWORD
    DB_NAME = os.environ.get('PROD_DB_NAME') or Config.DB_NAME


class TestingConfig(Config):
    """测试环境配置"""
    TESTING = True
    SECRET_KEY = 'club-portal-testing-secret-key'
    DB_NAME = 'club_portal_test'
    AUTO_INIT_DB = False
    LOG_FILE = None
    EMAIL_PROVIDER = 'demo'
    INSTITUTION_EMAIL_DOMAIN = 'inst.edu'
    UPLOAD_FOLDER = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'uploads_test')


# 配置映射
config = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig
}


def get_config():
    """按 APP_ENV 返回当前生效的配置类"""
    env_name = os.environ.get('APP_ENV', 'default').lower()
    return config.get(env_name, config['default'])
