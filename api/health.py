from flask import Blueprint, jsonify, current_app
import logging

from database import DatabaseManager


health_bp = Blueprint('health', __name__)

db_manager = DatabaseManager()
logger = logging.getLogger(__name__)


@health_bp.route('/health', methods=['GET'])
def health():
    """数据库连通性检查"""
    try:
        db_manager.ping()
    except Exception as e:
        logger.error(f"健康检查失败: {e}")
        return jsonify({
            'success': False,
            'message': 'Database unreachable',
            'data': {'database': 'down'}
        }), 503

    return jsonify({
        'success': True,
        'message': 'OK',
        'data': {
            'database': 'up',
            'version': current_app.config['SYSTEM_VERSION']
        }
    })
