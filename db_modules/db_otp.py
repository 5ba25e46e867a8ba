import logging
from datetime import timedelta

from mysql.connector import Error

from models import OtpVerification, VerificationToken


logger = logging.getLogger(__name__)


def _row_to_otp(row):
    return OtpVerification(
        otp_id=row['otp_id'],
        registration_id=row['registration_id'],
        gr_number=row['gr_number'],
        otp_code=row['otp_code'],
        created_at=row['created_at'],
        expires_at=row['expires_at'],
        verified=row['verified']
    )


def _row_to_token(row):
    return VerificationToken(
        token_id=row['token_id'],
        registration_id=row['registration_id'],
        email=row['email'],
        token=row['token'],
        created_at=row['created_at'],
        expires_at=row['expires_at'],
        verified=row['verified'],
        verified_at=row.get('verified_at')
    )


class OtpDbMixin:
    """验证码与邮件链接令牌相关数据库操作 mixin。

    依赖宿主类提供:
    - self.get_connection(): 返回数据库连接的上下文管理器
    """

    # ==================== 邮箱验证码 ====================

    def create_otp_verification(self, otp):
        """保存验证码记录"""
        try:
            with self.get_connection() as conn:
                cursor = conn.cursor()
                cursor.execute("""
                    INSERT INTO otp_verifications
                        (registration_id, gr_number, otp_code, created_at, expires_at, verified)
                    VALUES (%s, %s, %s, %s, %s, %s)
                """, (otp.registration_id, otp.gr_number, otp.otp_code,
                      otp.created_at, otp.expires_at, otp.verified))
                otp.otp_id = cursor.lastrowid
                conn.commit()
                return otp
        except Error as e:
            logger.error(f"保存验证码失败: {e}")
            raise

    def find_valid_otp(self, registration_id, gr_number, otp_code, now):
        """查找最近一条未使用且未过期的匹配验证码"""
        try:
            with self.get_connection() as conn:
                cursor = conn.cursor(dictionary=True)
                cursor.execute("""
                    SELECT * FROM otp_verifications
                    WHERE registration_id = %s AND gr_number = %s AND otp_code = %s
                      AND verified = FALSE AND expires_at >= %s
                    ORDER BY created_at DESC, otp_id DESC
                    LIMIT 1
                """, (registration_id, gr_number, otp_code, now))
                row = cursor.fetchone()
                return _row_to_otp(row) if row else None
        except Error as e:
            logger.error(f"查询验证码失败: {e}")
            raise

    def mark_otp_verified(self, otp_id):
        """标记验证码已使用；返回是否由本次调用完成标记"""
        try:
            with self.get_connection() as conn:
                cursor = conn.cursor()
                cursor.execute(
                    "UPDATE otp_verifications SET verified = TRUE WHERE otp_id = %s AND verified = FALSE",
                    (otp_id,)
                )
                conn.commit()
                return cursor.rowcount == 1
        except Error as e:
            logger.error(f"标记验证码失败: {e}")
            raise

    def get_otps_by_registration(self, registration_id):
        try:
            with self.get_connection() as conn:
                cursor = conn.cursor(dictionary=True)
                cursor.execute(
                    "SELECT * FROM otp_verifications WHERE registration_id = %s ORDER BY otp_id",
                    (registration_id,)
                )
                return [_row_to_otp(row) for row in cursor.fetchall()]
        except Error as e:
            logger.error(f"获取报名验证码记录失败: {e}")
            raise

    def expire_pending_otps(self, registration_id, gr_number, now):
        """让某参与者尚未使用的验证码立即过期（重新发送前调用）"""
        try:
            with self.get_connection() as conn:
                cursor = conn.cursor()
                cursor.execute("""
                    UPDATE otp_verifications SET expires_at = %s
                    WHERE registration_id = %s AND gr_number = %s
                      AND verified = FALSE AND expires_at >= %s
                """, (now - timedelta(seconds=1), registration_id, gr_number, now))
                conn.commit()
                return cursor.rowcount
        except Error as e:
            logger.error(f"作废旧验证码失败: {e}")
            raise

    # ==================== 邮件链接令牌 ====================

    def create_verification_token(self, token):
        try:
            with self.get_connection() as conn:
                cursor = conn.cursor()
                cursor.execute("""
                    INSERT INTO verification_tokens
                        (registration_id, email, token, created_at, expires_at, verified)
                    VALUES (%s, %s, %s, %s, %s, %s)
                """, (token.registration_id, token.email, token.token,
                      token.created_at, token.expires_at, token.verified))
                token.token_id = cursor.lastrowid
                conn.commit()
                return token
        except Error as e:
            logger.error(f"保存验证令牌失败: {e}")
            raise

    def get_verification_token(self, token_value):
        try:
            with self.get_connection() as conn:
                cursor = conn.cursor(dictionary=True)
                cursor.execute("SELECT * FROM verification_tokens WHERE token = %s", (token_value,))
                row = cursor.fetchone()
                return _row_to_token(row) if row else None
        except Error as e:
            logger.error(f"获取验证令牌失败: {e}")
            raise

    def mark_token_verified(self, token_id, now):
        try:
            with self.get_connection() as conn:
                cursor = conn.cursor()
                cursor.execute("""
                    UPDATE verification_tokens SET verified = TRUE, verified_at = %s
                    WHERE token_id = %s AND verified = FALSE
                """, (now, token_id))
                conn.commit()
                return cursor.rowcount == 1
        except Error as e:
            logger.error(f"标记验证令牌失败: {e}")
            raise

    def get_tokens_by_registration(self, registration_id):
        try:
            with self.get_connection() as conn:
                cursor = conn.cursor(dictionary=True)
                cursor.execute(
                    "SELECT * FROM verification_tokens WHERE registration_id = %s ORDER BY token_id",
                    (registration_id,)
                )
                return [_row_to_token(row) for row in cursor.fetchall()]
        except Error as e:
            logger.error(f"获取报名验证令牌失败: {e}")
            raise
