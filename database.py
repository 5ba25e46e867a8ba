#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
社团活动报名系统 - 数据库连接和操作
"""

import mysql.connector
from mysql.connector import Error, pooling
from contextlib import contextmanager
import logging
import time

from config import get_config
from models import DATABASE_SCHEMA
from utils.helpers import generate_password_hash
from db_modules.db_students import StudentDbMixin
from db_modules.db_events import EventDbMixin
from db_modules.db_registrations import RegistrationDbMixin
from db_modules.db_otp import OtpDbMixin
from db_modules.db_admins import AdminDbMixin

logger = logging.getLogger(__name__)


class TimedCursorWrapper:
    def __init__(self, cursor, slow_threshold_ms=50):
        self._cursor = cursor
        self._slow_threshold_ms = slow_threshold_ms

    def execute(self, operation, params=None, multi=False):
        start = time.perf_counter()
        try:
            if multi:
                return self._cursor.execute(operation, params, multi)
            return self._cursor.execute(operation, params)
        finally:
            duration_ms = (time.perf_counter() - start) * 1000
            if duration_ms >= self._slow_threshold_ms:
                logger.warning(
                    "Slow query took %.1f ms: %s; params=%s",
                    duration_ms,
                    operation,
                    params,
                )

    def executemany(self, operation, seq_params):
        start = time.perf_counter()
        try:
            return self._cursor.executemany(operation, seq_params)
        finally:
            duration_ms = (time.perf_counter() - start) * 1000
            if duration_ms >= self._slow_threshold_ms:
                logger.warning(
                    "Slow query (executemany) took %.1f ms: %s; params_count=%d",
                    duration_ms,
                    operation,
                    len(seq_params) if seq_params is not None else 0,
                )

    def __getattr__(self, item):
        return getattr(self._cursor, item)


_connection_pool = None


def _get_connection_pool(config, pool_name, pool_size):
    """获取全局数据库连接池（首次使用时创建）"""
    global _connection_pool
    if _connection_pool is None:
        try:
            _connection_pool = pooling.MySQLConnectionPool(
                pool_name=pool_name,
                pool_size=pool_size,
                **config
            )
            logger.info(f"数据库连接池创建成功，池大小: {pool_size}")
        except Error as e:
            logger.error(f"创建数据库连接池失败，将回退到直连模式: {e}")
            _connection_pool = None
    return _connection_pool


class DatabaseManager(
    StudentDbMixin,
    EventDbMixin,
    RegistrationDbMixin,
    OtpDbMixin,
    AdminDbMixin,
):
    """数据库管理器"""

    def __init__(self, settings=None):
        self.settings = settings or get_config()
        self.config = {
            'host': self.settings.DB_HOST,
            'port': self.settings.DB_PORT,
            'user': self.settings.DB_USER,
            'password': self.settings.DB_PASSWORD,
            'database': self.settings.DB_NAME,
            'charset': 'utf8mb4',
            'collation': 'utf8mb4_unicode_ci',
            'autocommit': False,
            'raise_on_warnings': False,
            'pool_reset_session': True,
            'connection_timeout': 30
        }
        self.pool = None

    def _connect(self):
        if self.pool is None:
            self.pool = _get_connection_pool(
                self.config,
                self.settings.DB_POOL_NAME,
                self.settings.DB_POOL_SIZE
            )
        if self.pool:
            return self.pool.get_connection()
        return mysql.connector.connect(**self.config)

    @contextmanager
    def get_connection(self):
        """获取数据库连接的上下文管理器"""
        connection = None
        try:
            connection = self._connect()
            slow_threshold_ms = self.settings.SLOW_QUERY_THRESHOLD_MS

            original_cursor = connection.cursor

            def timed_cursor(*args, **kwargs):
                base_cursor = original_cursor(*args, **kwargs)
                return TimedCursorWrapper(base_cursor, slow_threshold_ms=slow_threshold_ms)

            connection.cursor = timed_cursor

            yield connection
        except Error as e:
            logger.error(f"数据库连接错误: {e}")
            if connection:
                connection.rollback()
            raise
        finally:
            if connection and connection.is_connected():
                connection.close()

    def ping(self):
        """数据库连通性检查"""
        with self.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT 1")
            cursor.fetchone()
        return True

    def init_database(self, force_recreate=False):
        """初始化数据库和表

        Args:
            force_recreate (bool): 是否强制重建表（删除现有表）
        """
        try:
            # 首先连接到MySQL服务器（不指定数据库）
            temp_config = self.config.copy()
            temp_config.pop('database', None)

            with mysql.connector.connect(**temp_config) as connection:
                cursor = connection.cursor()
                try:
                    cursor.execute(
                        f"CREATE DATABASE IF NOT EXISTS {self.config['database']} "
                        f"CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci"
                    )
                except Error as e:
                    # 1007: 数据库已存在
                    if '1007' not in str(e):
                        logger.warning(f"创建数据库时出现警告: {e}")

            with self.get_connection() as connection:
                cursor = connection.cursor()

                if force_recreate:
                    logger.info("强制重建模式：删除现有表...")
                    for table_name in reversed(list(DATABASE_SCHEMA.keys())):
                        cursor.execute(f"DROP TABLE IF EXISTS {table_name}")
                        logger.info(f"删除表 {table_name}")

                for table_name, schema in DATABASE_SCHEMA.items():
                    try:
                        cursor.execute(schema)
                    except Error as e:
                        logger.error(f"创建表 {table_name} 失败: {e}")
                        raise

                connection.commit()

                self._create_default_admin(cursor)
                connection.commit()

        except Error as e:
            logger.error(f"数据库初始化失败: {e}")
            raise

    def _create_default_admin(self, cursor):
        """创建默认管理员账户（无任何管理员且配置了密码时）"""
        try:
            cursor.execute("SELECT COUNT(*) FROM admins")
            count = cursor.fetchone()[0]
            if count:
                return

            username = self.settings.ADMIN_USERNAME
            password = self.settings.ADMIN_PASSWORD
            if not password:
                logger.warning("未配置 ADMIN_PASSWORD，跳过默认管理员创建")
                return

            cursor.execute(
                "INSERT INTO admins (username, password_hash) VALUES (%s, %s)",
                (username, generate_password_hash(password))
            )
            logger.info(f"默认管理员账户创建成功 (用户名: {username})")

        except Error as e:
            logger.error(f"创建默认管理员失败: {e}")


if __name__ == '__main__':
    db_manager = DatabaseManager()
    try:
        db_manager.init_database()
        print("数据库初始化成功！")
    except Exception as e:
        print(f"数据库初始化失败: {e}")
