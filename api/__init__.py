#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
社团活动报名系统 - API接口模块
"""

from .events import events_bp
from .registrations import registrations_bp
from .admin import admin_bp
from .health import health_bp

__version__ = '1.0.0'

# 导出所有蓝图
__all__ = ['events_bp', 'registrations_bp', 'admin_bp', 'health_bp']
