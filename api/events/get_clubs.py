from flask import jsonify

from utils.decorators import log_action, handle_db_errors

from . import events_bp, db_manager


@events_bp.route('/clubs', methods=['GET'])
@log_action('获取社团列表')
@handle_db_errors
def get_clubs():
    """按社团汇总的活动目录"""
    clubs = db_manager.get_clubs()
    return jsonify({
        'success': True,
        'message': 'OK',
        'data': [
            {
                'club_name': club['club_name'],
                'event_count': club['event_count'],
                'events': [event.to_dict() for event in club['events']]
            }
            for club in clubs
        ]
    })
