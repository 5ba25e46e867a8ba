from flask import jsonify

from utils.decorators import log_action, handle_db_errors
from utils.errors import EventNotFound

from . import events_bp, db_manager


@events_bp.route('/<int:event_id>', methods=['GET'])
@log_action('获取活动详情')
@handle_db_errors
def get_event(event_id):
    """获取活动详情"""
    event = db_manager.get_event_by_id(event_id)
    if not event:
        raise EventNotFound(event_id)

    return jsonify({
        'success': True,
        'message': 'OK',
        'data': event.to_dict()
    })
