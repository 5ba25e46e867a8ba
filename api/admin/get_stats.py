from flask import jsonify

from utils.decorators import admin_required, log_action, handle_db_errors

from . import admin_bp, db_manager


@admin_bp.route('/stats', methods=['GET'])
@admin_required
@log_action('获取后台统计')
@handle_db_errors
def get_stats():
    """活动总数、报名总数、已验证、待验证"""
    return jsonify({
        'success': True,
        'message': 'OK',
        'data': db_manager.get_registration_stats()
    })
