import logging

from mysql.connector import Error

from models import Admin, AdminSession


logger = logging.getLogger(__name__)


class AdminDbMixin:
    """管理员与会话相关数据库操作 mixin。

    依赖宿主类提供:
    - self.get_connection(): 返回数据库连接的上下文管理器
    """

    def get_admin_by_username(self, username):
        try:
            with self.get_connection() as conn:
                cursor = conn.cursor(dictionary=True)
                cursor.execute("SELECT * FROM admins WHERE username = %s", (username,))
                row = cursor.fetchone()
                if row:
                    return Admin(
                        admin_id=row['admin_id'],
                        username=row['username'],
                        password_hash=row['password_hash'],
                        created_at=row.get('created_at')
                    )
                return None
        except Error as e:
            logger.error(f"获取管理员失败: {e}")
            raise

    def create_admin_session(self, admin_session):
        try:
            with self.get_connection() as conn:
                cursor = conn.cursor()
                cursor.execute("""
                    INSERT INTO admin_sessions (session_token, admin_id, created_at, expires_at)
                    VALUES (%s, %s, %s, %s)
                """, (admin_session.session_token, admin_session.admin_id,
                      admin_session.created_at, admin_session.expires_at))
                conn.commit()
                return admin_session
        except Error as e:
            logger.error(f"创建管理员会话失败: {e}")
            raise

    def get_admin_session(self, session_token):
        try:
            with self.get_connection() as conn:
                cursor = conn.cursor(dictionary=True)
                cursor.execute("SELECT * FROM admin_sessions WHERE session_token = %s", (session_token,))
                row = cursor.fetchone()
                if row:
                    return AdminSession(
                        session_token=row['session_token'],
                        admin_id=row['admin_id'],
                        created_at=row['created_at'],
                        expires_at=row['expires_at']
                    )
                return None
        except Error as e:
            logger.error(f"获取管理员会话失败: {e}")
            raise

    def delete_admin_session(self, session_token):
        try:
            with self.get_connection() as conn:
                cursor = conn.cursor()
                cursor.execute("DELETE FROM admin_sessions WHERE session_token = %s", (session_token,))
                conn.commit()
                return cursor.rowcount > 0
        except Error as e:
            logger.error(f"删除管理员会话失败: {e}")
            raise

    def delete_expired_admin_sessions(self, now):
        try:
            with self.get_connection() as conn:
                cursor = conn.cursor()
                cursor.execute("DELETE FROM admin_sessions WHERE expires_at <= %s", (now,))
                conn.commit()
                return cursor.rowcount
        except Error as e:
            logger.error(f"清理过期管理员会话失败: {e}")
            raise
