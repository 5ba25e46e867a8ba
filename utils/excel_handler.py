"""
Excel处理工具类
用于生成学生名录导入模板和解析上传的名录文件（xlsx / csv）
"""

import pandas as pd
from io import BytesIO
import re

from models import Student
from utils.helpers import validate_institution_email, parse_semester, file_extension

# 规范化后的表头 -> 字段
HEADER_ALIASES = {
    'gr number': 'gr_number',
    'gr no': 'gr_number',
    'gr no.': 'gr_number',
    'gr': 'gr_number',
    'grno': 'gr_number',
    'name': 'name',
    'student name': 'name',
    'full name': 'name',
    'email': 'email',
    'email id': 'email',
    'college email': 'email',
    'class': 'class_name',
    'section': 'class_name',
    'class/section': 'class_name',
    'division': 'class_name',
    'semester': 'semester',
    'sem': 'semester',
}

REQUIRED_FIELDS = {
    'gr_number': 'GR Number',
    'name': 'Name',
    'email': 'Email',
    'class_name': 'Class',
    'semester': 'Semester',
}

_INTEGRAL_FLOAT = re.compile(r'^(\d+)\.0+$')


def normalize_header(header):
    """不区分大小写，下划线与连续空白视为一个空格"""
    text = str(header).strip().lower().replace('_', ' ')
    return re.sub(r'\s+', ' ', text)


def _cell_text(value):
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return ''
    text = str(value).strip()
    if text.lower() == 'nan':
        return ''
    # Excel 数字单元格读成 '12345.0'
    match = _INTEGRAL_FLOAT.match(text)
    return match.group(1) if match else text


class ExcelHandler:
    def __init__(self, email_domain):
        self.email_domain = email_domain

    def generate_student_template(self):
        """
        生成学生名录导入Excel模板
        """
        domain = self.email_domain
        template_data = {
            'GR Number': ['123456', '123457'],
            'Name': ['Asha Patel', 'Rohan Mehta'],
            'Email': [f'asha.patel@{domain}', f'rohan.mehta@{domain}'],
            'Class': ['TY-ICT-A', 'SY-ICT-B'],
            'Semester': [5, 3]
        }
        df = pd.DataFrame(template_data)

        output = BytesIO()
        with pd.ExcelWriter(output, engine='openpyxl') as writer:
            df.to_excel(writer, sheet_name='Students', index=False)

            worksheet = writer.sheets['Students']
            column_widths = {'A': 15, 'B': 25, 'C': 35, 'D': 15, 'E': 10}
            for col, width in column_widths.items():
                worksheet.column_dimensions[col].width = width

            instructions = pd.DataFrame({
                'Instructions': [
                    '1. Only the first sheet is imported; keep the student list on it',
                    '2. GR Number: required, unique per student (existing students are updated)',
                    '3. Name: required',
                    f'4. Email: required, must be a @{domain} address',
                    '5. Class: required (class / section / division)',
                    '6. Semester: a whole number from 1 to 8',
                    '7. Example rows are for reference only; replace them with real data'
                ]
            })
            instructions.to_excel(writer, sheet_name='Instructions', index=False)
            writer.sheets['Instructions'].column_dimensions['A'].width = 70

        output.seek(0)
        return output.getvalue()

    def _read_table(self, file_content, filename):
        ext = file_extension(filename)
        if ext == 'csv':
            return pd.read_csv(BytesIO(file_content), dtype=str, keep_default_na=False, skip_blank_lines=False)
        if ext == 'xlsx':
            return pd.read_excel(
                BytesIO(file_content), sheet_name=0, dtype=str, keep_default_na=False, engine='openpyxl'
            )
        raise ValueError(f'Unsupported file type: .{ext}' if ext else 'File has no extension')

    def parse_student_roster(self, file_content, filename):
        """
        解析上传的学生名录文件

        Returns:
            dict: success、students（有效行）、errors（'Row N: ...'）、error（整体失败原因）
        """
        try:
            df = self._read_table(file_content, filename)
        except Exception as e:
            return {
                'success': False,
                'error': f'Could not read the file: {str(e)}',
                'students': [],
                'errors': []
            }

        columns = {}
        for column in df.columns:
            field = HEADER_ALIASES.get(normalize_header(column))
            if field and field not in columns:
                columns[field] = column

        missing = [label for field, label in REQUIRED_FIELDS.items() if field not in columns]
        if missing:
            return {
                'success': False,
                'error': f'Missing required columns: {", ".join(missing)}',
                'students': [],
                'errors': []
            }

        students = {}
        errors = []
        for index, row in df.iterrows():
            row_num = index + 2  # 表头占第1行
            values = {field: _cell_text(row[column]) for field, column in columns.items()}
            if not any(values.values()):
                continue

            error = self._validate_student_row(values)
            if error:
                errors.append(f'Row {row_num}: {error}')
                continue

            # 同一文件内学号重复时以后出现的为准
            students[values['gr_number']] = Student(
                gr_number=values['gr_number'],
                name=values['name'],
                email=values['email'],
                class_name=values['class_name'],
                semester=parse_semester(values['semester'])
            )

        if not students:
            return {
                'success': False,
                'error': 'No valid student records found',
                'students': [],
                'errors': errors
            }

        return {
            'success': True,
            'students': list(students.values()),
            'errors': errors
        }

    def _validate_student_row(self, values):
        """
        验证单行数据，返回第一个错误或 None
        """
        if not values['gr_number']:
            return 'GR Number is required'
        if not values['name']:
            return 'Name is required'
        if not validate_institution_email(values['email'], self.email_domain):
            return f'Valid {self.email_domain} email is required'
        if not values['class_name']:
            return 'Class is required'
        if parse_semester(values['semester']) is None:
            return 'Valid semester (1-8) is required'
        return None
