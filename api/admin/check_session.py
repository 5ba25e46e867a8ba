from flask import jsonify

from admin_manager import admin_manager
from utils.decorators import handle_db_errors, get_request_admin_token

from . import admin_bp


@admin_bp.route('/check-session', methods=['GET'])
@handle_db_errors
def check_session():
    """检查管理员会话是否有效"""
    admin_session = admin_manager.validate_session(get_request_admin_token())
    if not admin_session:
        return jsonify({
            'success': False,
            'message': 'Not logged in',
            'data': {'logged_in': False}
        }), 401

    return jsonify({
        'success': True,
        'message': 'OK',
        'data': {
            'logged_in': True,
            'expires_at': admin_session.expires_at.isoformat()
        }
    })
