import logging

from mysql.connector import Error, IntegrityError, errorcode

from models import Registration, RegistrationStatus, RegistrationType
from utils.errors import AlreadyRegistered


logger = logging.getLogger(__name__)


def _row_to_registration(row):
    return Registration(
        registration_id=row['registration_id'],
        event_id=row['event_id'],
        registration_type=row.get('registration_type') or RegistrationType.GR_OTP.value,
        team_leader_gr=row.get('team_leader_gr'),
        team_leader_name=row['team_leader_name'],
        team_leader_enrollment=row['team_leader_enrollment'],
        team_leader_email=row['team_leader_email'],
        team_leader_department=row['team_leader_department'],
        team_leader_program=row['team_leader_program'],
        team_leader_semester=row['team_leader_semester'],
        team_leader_verified=row.get('team_leader_verified'),
        team_members=row.get('team_members'),
        registration_status=row['registration_status'],
        verified=row.get('verified'),
        created_at=row.get('created_at'),
        confirmed_at=row.get('confirmed_at'),
        event_name=row.get('event_name'),
        club_name=row.get('club_name')
    )


class RegistrationDbMixin:
    """报名相关数据库操作 mixin。

    依赖宿主类提供:
    - self.get_connection(): 返回数据库连接的上下文管理器
    """

    # ==================== 报名 ====================

    def create_registration(self, registration):
        """创建报名；GR 流程同时写入参与者行（同一事务）"""
        try:
            with self.get_connection() as conn:
                cursor = conn.cursor()
                cursor.execute("""
                    INSERT INTO registrations (
                        event_id, registration_type, team_leader_gr, team_leader_name,
                        team_leader_enrollment, team_leader_email, team_leader_department,
                        team_leader_program, team_leader_semester, team_leader_verified,
                        team_members, registration_status, verified, created_at, confirmed_at
                    ) VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
                """, (
                    registration.event_id, registration.registration_type.value,
                    registration.team_leader_gr, registration.team_leader_name,
                    registration.team_leader_enrollment, registration.team_leader_email,
                    registration.team_leader_department, registration.team_leader_program,
                    registration.team_leader_semester, registration.team_leader_verified,
                    registration.team_members_json(), registration.registration_status.value,
                    registration.verified, registration.created_at, registration.confirmed_at
                ))
                registration.registration_id = cursor.lastrowid

                if registration.registration_type == RegistrationType.GR_OTP:
                    confirmed_key = 1 if registration.is_confirmed else None
                    cursor.executemany("""
                        INSERT INTO registration_participants
                            (registration_id, gr_number, is_leader, position, confirmed_key)
                        VALUES (%s, %s, %s, %s, %s)
                    """, [
                        (registration.registration_id, gr, index == 0, index, confirmed_key)
                        for index, gr in enumerate(registration.participant_grs)
                    ])

                conn.commit()
                logger.info(f"创建报名成功: registration_id={registration.registration_id}, event_id={registration.event_id}")
                return registration
        except Error as e:
            logger.error(f"创建报名失败: {e}")
            raise

    def get_registration_by_id(self, registration_id):
        """根据ID获取报名（含活动名称）"""
        try:
            with self.get_connection() as conn:
                cursor = conn.cursor(dictionary=True)
                cursor.execute("""
                    SELECT r.*, e.name AS event_name, e.club_name AS club_name
                    FROM registrations r
                    LEFT JOIN events e ON e.event_id = r.event_id
                    WHERE r.registration_id = %s
                """, (registration_id,))
                row = cursor.fetchone()
                return _row_to_registration(row) if row else None
        except Error as e:
            logger.error(f"获取报名失败: {e}")
            raise

    def find_confirmed_registration_for_gr(self, gr_number):
        """查找学号所在的已确认报名，返回 registration_id 或 None"""
        try:
            with self.get_connection() as conn:
                cursor = conn.cursor()
                cursor.execute("""
                    SELECT registration_id FROM registration_participants
                    WHERE gr_number = %s AND confirmed_key = 1
                    LIMIT 1
                """, (gr_number,))
                row = cursor.fetchone()
                return row[0] if row else None
        except Error as e:
            logger.error(f"查询学号报名状态失败 {gr_number}: {e}")
            raise

    def find_registration_by_leader_email(self, event_id, email):
        """同一活动下按领队邮箱（不区分大小写）查找报名"""
        try:
            with self.get_connection() as conn:
                cursor = conn.cursor(dictionary=True)
                cursor.execute("""
                    SELECT * FROM registrations
                    WHERE event_id = %s AND LOWER(team_leader_email) = LOWER(%s)
                    LIMIT 1
                """, (event_id, email))
                row = cursor.fetchone()
                return _row_to_registration(row) if row else None
        except Error as e:
            logger.error(f"按领队邮箱查询报名失败: {e}")
            raise

    def get_registration_participants(self, registration_id):
        """获取报名的参与者列表（按队内顺序）"""
        try:
            with self.get_connection() as conn:
                cursor = conn.cursor(dictionary=True)
                cursor.execute("""
                    SELECT gr_number, is_leader, position, confirmed_key
                    FROM registration_participants
                    WHERE registration_id = %s
                    ORDER BY position
                """, (registration_id,))
                return cursor.fetchall()
        except Error as e:
            logger.error(f"获取报名参与者失败: {e}")
            raise

    def mark_participant_verified(self, registration_id, gr_number=None, email=None):
        """在报名快照中标记参与者已验证（行锁内读改写 JSON）"""
        try:
            with self.get_connection() as conn:
                cursor = conn.cursor(dictionary=True)
                cursor.execute(
                    "SELECT * FROM registrations WHERE registration_id = %s FOR UPDATE",
                    (registration_id,)
                )
                row = cursor.fetchone()
                if not row:
                    conn.rollback()
                    return False
                registration = _row_to_registration(row)
                if not registration.mark_participant_verified(gr_number=gr_number, email=email):
                    conn.rollback()
                    return False
                cursor.execute("""
                    UPDATE registrations
                    SET team_leader_verified = %s, team_members = %s
                    WHERE registration_id = %s
                """, (registration.team_leader_verified, registration.team_members_json(), registration_id))
                conn.commit()
                return True
        except Error as e:
            logger.error(f"标记参与者验证失败: {e}")
            raise

    def mark_registration_confirmed(self, registration_id):
        """确认报名（幂等）。学号已在其他报名中确认时抛出 AlreadyRegistered"""
        try:
            with self.get_connection() as conn:
                cursor = conn.cursor()
                try:
                    cursor.execute("""
                        UPDATE registration_participants SET confirmed_key = 1
                        WHERE registration_id = %s
                    """, (registration_id,))
                except IntegrityError as e:
                    conn.rollback()
                    if e.errno != errorcode.ER_DUP_ENTRY:
                        raise
                    conflict = self._find_conflicting_gr(cursor, registration_id)
                    logger.warning(f"报名 {registration_id} 确认冲突，学号 {conflict} 已在其他报名中确认")
                    raise AlreadyRegistered(conflict)

                cursor.execute("""
                    UPDATE registrations
                    SET registration_status = %s, verified = TRUE,
                        confirmed_at = COALESCE(confirmed_at, NOW())
                    WHERE registration_id = %s
                """, (RegistrationStatus.CONFIRMED.value, registration_id))
                conn.commit()
                logger.info(f"报名已确认: registration_id={registration_id}")
                return True
        except Error as e:
            logger.error(f"确认报名失败: {e}")
            raise

    def _find_conflicting_gr(self, cursor, registration_id):
        cursor.execute("""
            SELECT p.gr_number FROM registration_participants p
            JOIN registration_participants other
              ON other.gr_number = p.gr_number AND other.confirmed_key = 1
             AND other.registration_id <> p.registration_id
            WHERE p.registration_id = %s
            ORDER BY p.position
            LIMIT 1
        """, (registration_id,))
        row = cursor.fetchone()
        return row[0] if row else None

    # ==================== 后台查询 ====================

    def _build_registration_where(self, event_id=None, status=None, keyword=None):
        """构建报名查询的 WHERE 子句和参数（复用于 count / list）"""
        where_clauses = []
        params = []

        if event_id:
            where_clauses.append("r.event_id = %s")
            params.append(event_id)
        if status == 'verified':
            where_clauses.append("r.verified = TRUE")
        elif status == 'pending':
            where_clauses.append("r.verified = FALSE")
        if keyword:
            like = f"%{keyword}%"
            where_clauses.append(
                "(r.team_leader_name LIKE %s OR r.team_leader_email LIKE %s OR r.team_leader_enrollment LIKE %s)"
            )
            params.extend([like, like, like])

        where_sql = (" WHERE " + " AND ".join(where_clauses)) if where_clauses else ""
        return where_sql, params

    def get_registrations_with_count(self, event_id=None, status=None, keyword=None,
                                     limit=None, offset=None):
        """在同一连接中获取报名列表（最新在前）和总数"""
        try:
            with self.get_connection() as conn:
                cursor = conn.cursor(dictionary=True)
                where_sql, params = self._build_registration_where(event_id, status, keyword)

                cursor.execute("SELECT COUNT(*) AS cnt FROM registrations r" + where_sql, params)
                total = cursor.fetchone()['cnt']

                list_sql = (
                    "SELECT r.*, e.name AS event_name, e.club_name AS club_name "
                    "FROM registrations r LEFT JOIN events e ON e.event_id = r.event_id"
                    + where_sql + " ORDER BY r.created_at DESC, r.registration_id DESC"
                )
                list_params = list(params)
                if limit:
                    list_sql += " LIMIT %s"
                    list_params.append(limit)
                    if offset:
                        list_sql += " OFFSET %s"
                        list_params.append(offset)
                cursor.execute(list_sql, list_params)

                return [_row_to_registration(row) for row in cursor.fetchall()], total
        except Error as e:
            logger.error(f"获取报名列表失败: {e}")
            raise

    def get_registration_stats(self):
        """后台看板统计"""
        try:
            with self.get_connection() as conn:
                cursor = conn.cursor(dictionary=True)
                cursor.execute("SELECT COUNT(*) AS cnt FROM events")
                total_events = cursor.fetchone()['cnt']
                cursor.execute("""
                    SELECT COUNT(*) AS total,
                           COALESCE(SUM(CASE WHEN verified THEN 1 ELSE 0 END), 0) AS verified
                    FROM registrations
                """)
                row = cursor.fetchone()
                total = int(row['total'] or 0)
                verified = int(row['verified'] or 0)
                return {
                    'total_events': total_events,
                    'total_registrations': total,
                    'verified_registrations': verified,
                    'pending_registrations': total - verified
                }
        except Error as e:
            logger.error(f"获取报名统计失败: {e}")
            raise
