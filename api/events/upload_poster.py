from flask import request, jsonify, current_app

from utils.decorators import admin_required, log_action, handle_db_errors
from utils.errors import EventNotFound, ValidationError
from utils.helpers import save_uploaded_file

from . import events_bp, db_manager, logger


@events_bp.route('/<int:event_id>/poster', methods=['POST'])
@admin_required
@log_action('上传活动海报')
@handle_db_errors
def upload_poster(event_id):
    """上传活动海报，保存到 uploads/posters 并更新 poster_url"""
    event = db_manager.get_event_by_id(event_id)
    if not event:
        raise EventNotFound(event_id)

    file = request.files.get('file')
    if not file or not file.filename:
        raise ValidationError('No file provided')

    result = save_uploaded_file(file, current_app.config['POSTER_EXTENSIONS'], subfolder='posters')
    if not result['success']:
        raise ValidationError(result['error'])

    poster_url = f"/uploads/{result['relative_path']}"
    db_manager.update_event_poster(event_id, poster_url)
    logger.info(f"活动 {event_id} 海报已更新: {poster_url}")

    return jsonify({
        'success': True,
        'message': 'Poster uploaded',
        'data': {'poster_url': poster_url}
    })
