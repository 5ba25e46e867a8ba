from flask import Blueprint
import logging

from database import DatabaseManager


admin_bp = Blueprint('admin', __name__)

db_manager = DatabaseManager()
logger = logging.getLogger(__name__)

# 每个具体路由实现在本包下的独立模块中
from . import (
    login,
    logout,
    check_session,
    get_stats,
    list_registrations,
    export_registrations,
    upload_students,
    student_template,
    list_students,
)

__all__ = ['admin_bp']
