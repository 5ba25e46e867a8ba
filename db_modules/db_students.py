import logging

from mysql.connector import Error

from models import Student


logger = logging.getLogger(__name__)


def _row_to_student(row):
    return Student(
        gr_number=row['gr_number'],
        name=row['name'],
        email=row['email'],
        class_name=row['class_name'],
        semester=row['semester'],
        created_at=row.get('created_at'),
        updated_at=row.get('updated_at')
    )


class StudentDbMixin:
    """学生名录相关数据库操作 mixin。

    依赖宿主类提供:
    - self.get_connection(): 返回数据库连接的上下文管理器
    """

    def get_student_by_gr(self, gr_number):
        """根据学号获取学生"""
        try:
            with self.get_connection() as conn:
                cursor = conn.cursor(dictionary=True)
                cursor.execute("SELECT * FROM students WHERE gr_number = %s", (gr_number,))
                row = cursor.fetchone()
                return _row_to_student(row) if row else None
        except Error as e:
            logger.error(f"获取学生失败 {gr_number}: {e}")
            raise

    def upsert_students(self, students):
        """按学号批量插入或覆盖学生记录，返回处理条数"""
        if not students:
            return 0
        try:
            with self.get_connection() as conn:
                cursor = conn.cursor()
                cursor.executemany("""
                    INSERT INTO students (gr_number, name, email, class_name, semester)
                    VALUES (%s, %s, %s, %s, %s)
                    ON DUPLICATE KEY UPDATE
                        name = VALUES(name),
                        email = VALUES(email),
                        class_name = VALUES(class_name),
                        semester = VALUES(semester)
                """, [(s.gr_number, s.name, s.email, s.class_name, s.semester) for s in students])
                conn.commit()
                logger.info(f"学生名录导入完成，共 {len(students)} 条")
                return len(students)
        except Error as e:
            logger.error(f"批量导入学生失败: {e}")
            raise

    def _build_student_where(self, keyword=None):
        if not keyword:
            return "", []
        like = f"%{keyword}%"
        return " WHERE gr_number LIKE %s OR name LIKE %s OR email LIKE %s", [like, like, like]

    def get_students_with_count(self, keyword=None, limit=None, offset=None):
        """在同一连接中获取学生列表和总数"""
        try:
            with self.get_connection() as conn:
                cursor = conn.cursor(dictionary=True)
                where_sql, params = self._build_student_where(keyword)

                cursor.execute("SELECT COUNT(*) AS cnt FROM students" + where_sql, params)
                total = cursor.fetchone()['cnt']

                list_sql = "SELECT * FROM students" + where_sql + " ORDER BY gr_number"
                list_params = list(params)
                if limit:
                    list_sql += " LIMIT %s"
                    list_params.append(limit)
                    if offset:
                        list_sql += " OFFSET %s"
                        list_params.append(offset)
                cursor.execute(list_sql, list_params)

                return [_row_to_student(row) for row in cursor.fetchall()], total
        except Error as e:
            logger.error(f"获取学生列表失败: {e}")
            raise
