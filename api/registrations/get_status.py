from flask import jsonify

from registration_manager import registration_manager
from utils.decorators import log_action, handle_db_errors

from . import registrations_bp


@registrations_bp.route('/<int:registration_id>/status', methods=['GET'])
@log_action('查询报名状态')
@handle_db_errors
def get_status(registration_id):
    """报名状态及每位参与者的验证情况"""
    return jsonify({
        'success': True,
        'message': 'OK',
        'data': registration_manager.get_status(registration_id)
    })
