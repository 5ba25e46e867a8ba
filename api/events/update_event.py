from flask import request, jsonify

from utils.decorators import admin_required, validate_json, log_action, handle_db_errors
from utils.errors import EventNotFound

from . import events_bp, db_manager, logger, parse_event_payload


@events_bp.route('/<int:event_id>', methods=['PUT'])
@admin_required
@validate_json(['name', 'club_name'])
@log_action('更新活动')
@handle_db_errors
def update_event(event_id):
    """更新活动"""
    event = db_manager.get_event_by_id(event_id)
    if not event:
        raise EventNotFound(event_id)

    data = request.get_json()
    fields = parse_event_payload(data)
    if 'poster_url' not in data:
        fields['poster_url'] = event.poster_url
    for key, value in fields.items():
        setattr(event, key, value)

    db_manager.update_event(event)
    logger.info(f"更新活动 {event_id}: {event.club_name} - {event.name}")

    return jsonify({
        'success': True,
        'message': 'Event updated',
        'data': event.to_dict()
    })
