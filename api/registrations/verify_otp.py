from flask import request, jsonify

from registration_manager import registration_manager
from utils.decorators import validate_json, log_action, handle_db_errors
from utils.errors import ValidationError

from . import registrations_bp


@registrations_bp.route('/<int:registration_id>/verify-otp', methods=['POST'])
@validate_json(['gr_number', 'otp_code'])
@log_action('提交验证码')
@handle_db_errors
def verify_otp(registration_id):
    """校验某位参与者的验证码"""
    data = request.get_json()
    # 数字形式会丢失前导零
    if not isinstance(data['otp_code'], str):
        raise ValidationError('otp_code must be sent as a 6-digit string')

    result = registration_manager.submit_verification_code(
        registration_id, data['gr_number'], data['otp_code']
    )

    if result['all_verified']:
        message = 'All participants verified. Your registration is confirmed.'
    else:
        message = 'Code verified. Waiting for the remaining participants to verify.'

    return jsonify({
        'success': True,
        'message': message,
        'data': result
    })
