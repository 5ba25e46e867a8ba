#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
社团活动报名系统 - 装饰器（请求校验、后台权限、日志等）
"""

from functools import wraps
from flask import session, jsonify, request, g
import logging
import time

from utils.errors import RegistrationError

logger = logging.getLogger(__name__)

ADMIN_SESSION_KEY = 'admin_session_token'


def get_request_admin_token():
    """从 Flask session 或 Authorization: Bearer 头取管理员会话令牌"""
    token = session.get(ADMIN_SESSION_KEY)
    if token:
        return token
    auth_header = request.headers.get('Authorization', '')
    if auth_header.startswith('Bearer '):
        return auth_header[len('Bearer '):].strip() or None
    return None


def admin_required(f):
    """管理员会话验证装饰器"""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        from admin_manager import admin_manager

        token = get_request_admin_token()
        admin_session = admin_manager.validate_session(token) if token else None
        if not admin_session:
            if session.get(ADMIN_SESSION_KEY):
                session.pop(ADMIN_SESSION_KEY, None)
            return jsonify({
                'success': False,
                'error': 'unauthorized',
                'message': 'Admin login required'
            }), 401

        g.admin_session = admin_session
        return f(*args, **kwargs)
    return decorated_function


def validate_json(required_fields=None):
    """JSON数据验证装饰器

    Args:
        required_fields: 必需的字段列表
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not request.is_json:
                return jsonify({'success': False, 'message': 'Request body must be JSON'}), 400

            data = request.get_json(silent=True)
            if not isinstance(data, dict) or not data:
                return jsonify({'success': False, 'message': 'JSON body is empty'}), 400

            if required_fields:
                missing_fields = [
                    field for field in required_fields
                    if field not in data or data[field] is None or data[field] == ''
                ]
                if missing_fields:
                    return jsonify({
                        'success': False,
                        'error': 'validation_error',
                        'message': f'Missing required fields: {", ".join(missing_fields)}'
                    }), 400

            return f(*args, **kwargs)
        return decorated_function
    return decorator


def log_action(action_name):
    """操作日志装饰器

    Args:
        action_name: 操作名称
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            actor = 'admin' if session.get(ADMIN_SESSION_KEY) else request.remote_addr

            start_time = time.perf_counter()
            logger.info(f"{actor} 开始执行操作: {action_name}")

            try:
                result = f(*args, **kwargs)

                duration_ms = (time.perf_counter() - start_time) * 1000
                logger.info(f"{actor} 成功完成操作: {action_name}, 耗时: {duration_ms:.1f} ms")

                return result

            except Exception as e:
                duration_ms = (time.perf_counter() - start_time) * 1000
                logger.error(
                    f"{actor} 执行操作失败: {action_name}, 耗时: {duration_ms:.1f} ms, 错误: {str(e)}"
                )
                raise

        return decorated_function
    return decorator


def handle_db_errors(f):
    """数据库错误处理装饰器（业务异常交给应用级 errorhandler）"""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        try:
            return f(*args, **kwargs)
        except RegistrationError:
            raise
        except Exception as e:
            logger.exception(f"数据库操作错误: {str(e)}")
            return jsonify({
                'success': False,
                'error': 'server_error',
                'message': 'Database operation failed, please try again later'
            }), 500

    return decorated_function
