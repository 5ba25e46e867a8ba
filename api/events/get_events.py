from flask import request, jsonify

from utils.decorators import log_action, handle_db_errors

from . import events_bp, db_manager, logger


@events_bp.route('/', methods=['GET'])
@log_action('获取活动列表')
@handle_db_errors
def get_events():
    """获取活动列表（最新在前）
    可选查询参数：
    - club: 只看某个社团的活动
    """
    club_name = request.args.get('club', '').strip() or None
    events = db_manager.get_all_events(club_name=club_name)
    logger.debug(f"活动列表返回 {len(events)} 条")

    return jsonify({
        'success': True,
        'message': 'OK',
        'data': [event.to_dict() for event in events],
        'total': len(events)
    })
