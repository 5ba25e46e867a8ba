from flask import request, jsonify

from utils.decorators import admin_required, log_action, handle_db_errors
from utils.errors import ValidationError
from utils.helpers import paginate_params, pagination_payload

from . import admin_bp, db_manager

STATUS_FILTERS = ('all', 'verified', 'pending')


@admin_bp.route('/registrations', methods=['GET'])
@admin_required
@log_action('获取报名列表')
@handle_db_errors
def list_registrations():
    """报名列表
    可选查询参数：
    - event_id: 活动ID
    - status: all / verified / pending，默认 all
    - search: 匹配领队姓名、邮箱、注册号
    - page / per_page: 分页
    """
    event_id = request.args.get('event_id', type=int)
    status = request.args.get('status', 'all').strip().lower() or 'all'
    if status not in STATUS_FILTERS:
        raise ValidationError(f'status must be one of: {", ".join(STATUS_FILTERS)}')
    keyword = request.args.get('search', '').strip() or None
    page, per_page, offset = paginate_params(request.args)

    registrations, total = db_manager.get_registrations_with_count(
        event_id=event_id, status=status, keyword=keyword, limit=per_page, offset=offset
    )

    return jsonify({
        'success': True,
        'message': 'OK',
        'data': [registration.to_dict() for registration in registrations],
        'pagination': pagination_payload(total, page, per_page)
    })
