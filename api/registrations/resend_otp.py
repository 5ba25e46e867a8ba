from flask import request, jsonify

from registration_manager import registration_manager
from utils.decorators import validate_json, log_action, handle_db_errors

from . import registrations_bp


@registrations_bp.route('/<int:registration_id>/resend-otp', methods=['POST'])
@validate_json(['gr_number'])
@log_action('重新发送验证码')
@handle_db_errors
def resend_otp(registration_id):
    """为尚未验证的参与者重新发送验证码"""
    data = request.get_json()
    info = registration_manager.reissue_otp(registration_id, data['gr_number'])

    return jsonify({
        'success': True,
        'message': 'A new OTP has been sent. Earlier codes are no longer valid.',
        'data': info
    })
