from flask import request, jsonify, current_app

from utils.decorators import admin_required, log_action, handle_db_errors
from utils.excel_handler import ExcelHandler
from utils.helpers import allowed_file

from . import admin_bp, db_manager, logger


@admin_bp.route('/students/upload', methods=['POST'])
@admin_required
@log_action('导入学生名录')
@handle_db_errors
def upload_students():
    """上传学生名录（xlsx / csv），有效行按学号插入或覆盖"""
    if 'file' not in request.files:
        return jsonify({'success': False, 'message': 'No file provided'}), 400

    file = request.files['file']
    if not file.filename:
        return jsonify({'success': False, 'message': 'No file selected'}), 400

    allowed = current_app.config['ROSTER_EXTENSIONS']
    if not allowed_file(file.filename, allowed):
        return jsonify({
            'success': False,
            'message': f'Unsupported file type, allowed: {", ".join(sorted(allowed))}'
        }), 400

    handler = ExcelHandler(current_app.config['INSTITUTION_EMAIL_DOMAIN'])
    result = handler.parse_student_roster(file.read(), file.filename)

    if not result['success']:
        logger.warning(f"学生名录导入失败: {result['error']}，错误行 {len(result['errors'])} 条")
        return jsonify({
            'success': False,
            'message': result['error'],
            'errors': result['errors']
        }), 400

    processed = db_manager.upsert_students(result['students'])
    return jsonify({
        'success': True,
        'message': f'Successfully processed {processed} student records',
        'processed': processed,
        'errors': result['errors']
    })
