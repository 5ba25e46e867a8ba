from flask import request, jsonify

from registration_manager import registration_manager
from utils.decorators import log_action, handle_db_errors

from . import registrations_bp


@registrations_bp.route('/verify-email', methods=['GET'])
@log_action('邮件链接验证')
@handle_db_errors
def verify_email():
    """邮件中的验证链接"""
    result = registration_manager.verify_email_token(request.args.get('token', ''))

    if result['all_verified']:
        message = 'Email verified. Your team registration is confirmed.'
    else:
        message = 'Email verified. Waiting for the rest of the team to confirm.'

    return jsonify({
        'success': True,
        'message': message,
        'data': result
    })
