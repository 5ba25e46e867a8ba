from flask import request, jsonify

from utils.decorators import admin_required, log_action, handle_db_errors
from utils.helpers import paginate_params, pagination_payload

from . import admin_bp, db_manager


@admin_bp.route('/students', methods=['GET'])
@admin_required
@log_action('获取学生名录')
@handle_db_errors
def list_students():
    """学生名录（search 匹配学号、姓名、邮箱）"""
    keyword = request.args.get('search', '').strip() or None
    page, per_page, offset = paginate_params(request.args)

    students, total = db_manager.get_students_with_count(keyword=keyword, limit=per_page, offset=offset)

    return jsonify({
        'success': True,
        'message': 'OK',
        'data': [student.to_dict() for student in students],
        'pagination': pagination_payload(total, page, per_page)
    })
