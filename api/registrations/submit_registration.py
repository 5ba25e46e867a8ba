from flask import request, jsonify

from registration_manager import registration_manager
from utils.decorators import validate_json, log_action, handle_db_errors
from utils.errors import ValidationError

from . import registrations_bp


@registrations_bp.route('/', methods=['POST'])
@validate_json(['event_id', 'leader_gr'])
@log_action('提交报名')
@handle_db_errors
def submit_registration():
    """学号报名：创建待验证报名并给每位参与者发送验证码
    请求体：
    - event_id: 活动ID
    - leader_gr: 领队学号
    - member_grs: 队员学号列表（可选，空值会被忽略）
    """
    data = request.get_json()
    member_grs = data.get('member_grs') or []
    if not isinstance(member_grs, list):
        raise ValidationError('member_grs must be a list')

    result = registration_manager.submit(data['event_id'], data['leader_gr'], member_grs)

    if result['all_sent']:
        message = 'Registration created. An OTP has been sent to every participant.'
    else:
        message = 'Registration created, but some OTP emails could not be sent. See otp_results.'

    return jsonify({
        'success': True,
        'message': message,
        'data': result
    }), 201
