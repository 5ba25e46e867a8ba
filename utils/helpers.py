#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
社团活动报名系统 - 辅助函数
"""

import os
import uuid
import hashlib
import hmac
from datetime import datetime
from werkzeug.utils import secure_filename
from flask import current_app
import re


def generate_unique_filename(filename):
    """生成唯一的文件名"""
    if filename:
        ext = os.path.splitext(filename)[1]
        unique_id = str(uuid.uuid4())
        timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
        return f"{timestamp}_{unique_id}{ext}"
    return None


def file_extension(filename):
    if not filename or '.' not in filename:
        return ''
    return filename.rsplit('.', 1)[1].lower()


def allowed_file(filename, allowed_extensions):
    """检查文件类型是否允许"""
    return file_extension(filename) in allowed_extensions


def save_uploaded_file(file, allowed_extensions, subfolder=''):
    """保存上传的文件"""
    if file and allowed_file(file.filename, allowed_extensions):
        original_filename = secure_filename(file.filename)
        unique_filename = generate_unique_filename(original_filename)

        upload_folder = current_app.config['UPLOAD_FOLDER']
        if subfolder:
            upload_folder = os.path.join(upload_folder, subfolder)
        os.makedirs(upload_folder, exist_ok=True)

        file_path = os.path.join(upload_folder, unique_filename)
        file.save(file_path)

        return {
            'success': True,
            'filename': unique_filename,
            'original_filename': original_filename,
            'file_path': file_path,
            'relative_path': '/'.join([subfolder, unique_filename]) if subfolder else unique_filename
        }

    return {'success': False, 'error': 'Unsupported file type'}


def format_date(date, format_str='%Y-%m-%d'):
    """格式化日期"""
    if not date:
        return ''

    if isinstance(date, str):
        return date

    if isinstance(date, datetime):
        date = date.date()

    return date.strftime(format_str)


def validate_email(email):
    """验证邮箱格式"""
    if not email:
        return False

    pattern = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'
    return re.match(pattern, email) is not None


def validate_institution_email(email, domain):
    """邮箱格式正确且以学校域名结尾（不区分大小写）"""
    if not validate_email(email):
        return False
    return email.lower().endswith('@' + domain.lower())


def parse_semester(value):
    """把学期解析为 1-8 的整数，'3'、'3.0'、3 均可；无效返回 None"""
    if value is None or isinstance(value, bool):
        return None
    text = str(value).strip()
    if not text:
        return None
    try:
        number = float(text)
    except ValueError:
        return None
    if not number.is_integer():
        return None
    number = int(number)
    return number if 1 <= number <= 8 else None


def generate_password_hash(password, salt_length=16):
    """生成密码哈希

    返回 salt+hash 的十六进制字符串（仅包含 ASCII 字符），以避免在 utf8mb4 连接下
    向 MySQL 发送任意二进制数据导致 1300 Invalid utf8mb4 character string 错误。
    """
    salt = os.urandom(salt_length)
    password_hash = hashlib.pbkdf2_hmac('sha256', password.encode('utf-8'), salt, 100000)
    return (salt + password_hash).hex()


def verify_password(password, password_hash):
    """验证密码（salt+hash 十六进制字符串，或其 ASCII 字节形式）"""
    if not password_hash or password is None:
        return False

    if isinstance(password_hash, (bytes, bytearray)):
        try:
            password_hash = password_hash.decode('ascii')
        except UnicodeDecodeError:
            return False

    try:
        raw = bytes.fromhex(password_hash)
    except (TypeError, ValueError):
        return False

    # 至少应包含 16 字节盐 + 32 字节哈希
    if len(raw) < 16 + 32:
        return False

    salt = raw[:16]
    stored_hash = raw[16:]
    computed_hash = hashlib.pbkdf2_hmac('sha256', password.encode('utf-8'), salt, 100000)
    return hmac.compare_digest(computed_hash, stored_hash)


def paginate_params(args, default_per_page=20, max_per_page=100):
    """从查询参数解析分页，返回 (page, per_page, offset)"""
    try:
        page = max(int(args.get('page', 1)), 1)
    except (TypeError, ValueError):
        page = 1
    try:
        per_page = int(args.get('per_page', default_per_page))
    except (TypeError, ValueError):
        per_page = default_per_page
    per_page = min(max(per_page, 1), max_per_page)
    return page, per_page, (page - 1) * per_page


def pagination_payload(total, page, per_page):
    return {
        'total': total,
        'page': page,
        'per_page': per_page,
        'pages': (total + per_page - 1) // per_page,
        'has_prev': page > 1,
        'has_next': page * per_page < total
    }
