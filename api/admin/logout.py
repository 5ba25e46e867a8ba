from flask import jsonify, session

from admin_manager import admin_manager
from utils.decorators import log_action, handle_db_errors, get_request_admin_token, ADMIN_SESSION_KEY

from . import admin_bp


@admin_bp.route('/logout', methods=['POST'])
@log_action('管理员退出')
@handle_db_errors
def logout():
    """退出登录并删除会话"""
    token = get_request_admin_token()
    if token:
        admin_manager.revoke_session(token)
    session.pop(ADMIN_SESSION_KEY, None)

    return jsonify({
        'success': True,
        'message': 'Logged out'
    })
