import logging

from mysql.connector import Error

from models import Event


logger = logging.getLogger(__name__)


def _row_to_event(row):
    return Event(
        event_id=row['event_id'],
        name=row['name'],
        club_name=row['club_name'],
        description=row.get('description'),
        poster_url=row.get('poster_url'),
        min_team_size=row['min_team_size'],
        max_team_size=row['max_team_size'],
        created_at=row.get('created_at'),
        updated_at=row.get('updated_at')
    )


class EventDbMixin:
    """活动相关数据库操作 mixin。

    依赖宿主类提供:
    - self.get_connection(): 返回数据库连接的上下文管理器
    """

    # ==================== 活动相关操作 ====================

    def create_event(self, event):
        """创建活动"""
        try:
            with self.get_connection() as conn:
                cursor = conn.cursor()
                cursor.execute("""
                    INSERT INTO events (name, club_name, description, poster_url,
                                        min_team_size, max_team_size)
                    VALUES (%s, %s, %s, %s, %s, %s)
                """, (event.name, event.club_name, event.description, event.poster_url,
                      event.min_team_size, event.max_team_size))
                event.event_id = cursor.lastrowid
                conn.commit()
                return event
        except Error as e:
            logger.error(f"创建活动失败: {e}")
            raise

    def get_event_by_id(self, event_id):
        """根据ID获取活动"""
        try:
            with self.get_connection() as conn:
                cursor = conn.cursor(dictionary=True)
                cursor.execute("SELECT * FROM events WHERE event_id = %s", (event_id,))
                row = cursor.fetchone()
                return _row_to_event(row) if row else None
        except Error as e:
            logger.error(f"获取活动失败: {e}")
            raise

    def get_all_events(self, club_name=None):
        """获取全部活动（最新创建的在前）"""
        try:
            with self.get_connection() as conn:
                cursor = conn.cursor(dictionary=True)
                sql = "SELECT * FROM events"
                params = []
                if club_name:
                    sql += " WHERE club_name = %s"
                    params.append(club_name)
                sql += " ORDER BY created_at DESC, event_id DESC"
                cursor.execute(sql, params)
                return [_row_to_event(row) for row in cursor.fetchall()]
        except Error as e:
            logger.error(f"获取活动列表失败: {e}")
            raise

    def update_event(self, event):
        """更新活动"""
        try:
            with self.get_connection() as conn:
                cursor = conn.cursor()
                cursor.execute("""
                    UPDATE events
                    SET name = %s, club_name = %s, description = %s, poster_url = %s,
                        min_team_size = %s, max_team_size = %s
                    WHERE event_id = %s
                """, (event.name, event.club_name, event.description, event.poster_url,
                      event.min_team_size, event.max_team_size, event.event_id))
                conn.commit()
                return event
        except Error as e:
            logger.error(f"更新活动失败: {e}")
            raise

    def update_event_poster(self, event_id, poster_url):
        """只更新海报地址"""
        try:
            with self.get_connection() as conn:
                cursor = conn.cursor()
                cursor.execute("UPDATE events SET poster_url = %s WHERE event_id = %s", (poster_url, event_id))
                conn.commit()
                return cursor.rowcount > 0
        except Error as e:
            logger.error(f"更新活动海报失败: {e}")
            raise

    def delete_event(self, event_id):
        """删除活动"""
        try:
            with self.get_connection() as conn:
                cursor = conn.cursor()
                cursor.execute("DELETE FROM events WHERE event_id = %s", (event_id,))
                conn.commit()
                return cursor.rowcount > 0
        except Error as e:
            logger.error(f"删除活动失败: {e}")
            raise

    def count_event_registrations(self, event_id):
        """统计某活动的报名数"""
        try:
            with self.get_connection() as conn:
                cursor = conn.cursor()
                cursor.execute("SELECT COUNT(*) FROM registrations WHERE event_id = %s", (event_id,))
                return cursor.fetchone()[0]
        except Error as e:
            logger.error(f"统计活动报名数失败: {e}")
            raise

    def get_clubs(self):
        """按社团汇总活动（社团名按字母序，社团内最新活动在前）"""
        clubs = {}
        for event in self.get_all_events():
            clubs.setdefault(event.club_name, []).append(event)
        return [
            {'club_name': name, 'event_count': len(events), 'events': events}
            for name, events in sorted(clubs.items(), key=lambda item: item[0].lower())
        ]
