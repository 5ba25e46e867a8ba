from flask import Blueprint
import logging


registrations_bp = Blueprint('registrations', __name__)

logger = logging.getLogger(__name__)


# 每个具体路由实现在本包下的独立模块中
from . import (
    submit_registration,
    verify_otp,
    resend_otp,
    get_status,
    register_direct,
    verify_email,
)

__all__ = ['registrations_bp']
