from flask import request, jsonify

from models import Event
from utils.decorators import admin_required, validate_json, log_action, handle_db_errors

from . import events_bp, db_manager, logger, parse_event_payload


@events_bp.route('/', methods=['POST'])
@admin_required
@validate_json(['name', 'club_name'])
@log_action('创建活动')
@handle_db_errors
def create_event():
    """创建活动"""
    fields = parse_event_payload(request.get_json())
    event = db_manager.create_event(Event(**fields))
    logger.info(f"创建活动 {event.event_id}: {event.club_name} - {event.name}")

    return jsonify({
        'success': True,
        'message': 'Event created',
        'data': event.to_dict()
    }), 201
