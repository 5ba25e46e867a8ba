from flask import request, jsonify, session

from admin_manager import admin_manager
from utils.decorators import validate_json, log_action, handle_db_errors, ADMIN_SESSION_KEY

from . import admin_bp, logger


@admin_bp.route('/login', methods=['POST'])
@validate_json(['username', 'password'])
@log_action('管理员登录')
@handle_db_errors
def login():
    """管理员登录，令牌同时写入 session 并在响应中返回（供 Bearer 使用）"""
    data = request.get_json()
    username = str(data['username']).strip()

    admin_session = admin_manager.login(username, str(data['password']))
    if not admin_session:
        return jsonify({
            'success': False,
            'error': 'unauthorized',
            'message': 'Invalid username or password'
        }), 401

    session[ADMIN_SESSION_KEY] = admin_session.session_token
    session.permanent = True
    logger.info(f"管理员 {username} 登录成功")

    return jsonify({
        'success': True,
        'message': 'Login successful',
        'data': {
            'username': username,
            'token': admin_session.session_token,
            'expires_at': admin_session.expires_at.isoformat()
        }
    })
