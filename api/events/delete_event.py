from flask import jsonify

from utils.decorators import admin_required, log_action, handle_db_errors
from utils.errors import EventNotFound

from . import events_bp, db_manager, logger


@events_bp.route('/<int:event_id>', methods=['DELETE'])
@admin_required
@log_action('删除活动')
@handle_db_errors
def delete_event(event_id):
    """删除活动（已有报名时拒绝）"""
    event = db_manager.get_event_by_id(event_id)
    if not event:
        raise EventNotFound(event_id)

    registration_count = db_manager.count_event_registrations(event_id)
    if registration_count:
        return jsonify({
            'success': False,
            'error': 'event_has_registrations',
            'message': f'Cannot delete this event: it already has {registration_count} registration(s)'
        }), 409

    db_manager.delete_event(event_id)
    logger.info(f"删除活动 {event_id}: {event.name}")
    return jsonify({
        'success': True,
        'message': 'Event deleted'
    })
