from io import BytesIO

from flask import send_file, current_app

from utils.decorators import admin_required, log_action, handle_db_errors
from utils.excel_handler import ExcelHandler

from . import admin_bp


@admin_bp.route('/students/template', methods=['GET'])
@admin_required
@log_action('下载学生名录模板')
@handle_db_errors
def student_template():
    """下载学生名录导入模板"""
    handler = ExcelHandler(current_app.config['INSTITUTION_EMAIL_DOMAIN'])
    return send_file(
        BytesIO(handler.generate_student_template()),
        mimetype='application/vnd.openxmlformats-officedocument.spreadsheetml.sheet',
        as_attachment=True,
        download_name='student_roster_template.xlsx',
    )
