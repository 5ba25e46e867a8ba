from flask import request, jsonify

from registration_manager import registration_manager
from utils.decorators import validate_json, log_action, handle_db_errors
from utils.errors import ValidationError

from . import registrations_bp


@registrations_bp.route('/direct', methods=['POST'])
@validate_json(['event_id', 'leader'])
@log_action('直接报名')
@handle_db_errors
def register_direct():
    """表单直接报名
    请求体：
    - event_id: 活动ID
    - leader: {name, enrollment, email, program, department?, semester?}
    - members: 同 leader 结构的列表（可选）
    """
    data = request.get_json()
    members = data.get('members') or []
    if not isinstance(members, list):
        raise ValidationError('members must be a list')

    result = registration_manager.register_direct(data['event_id'], data['leader'], members)
    registration = result['registration']

    if registration['registration_status'] == 'confirmed':
        message = 'Registration confirmed.'
    else:
        message = 'Registration received. Every participant must confirm via the link sent to their email.'

    return jsonify({
        'success': True,
        'message': message,
        'data': result
    }), 201
