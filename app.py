from flask import Flask, request, jsonify, send_from_directory, g
import os
import sys
import time
from werkzeug.exceptions import HTTPException
from werkzeug.middleware.proxy_fix import ProxyFix

from config import config as config_map
from database import DatabaseManager
from utils.errors import RegistrationError
from api import events_bp, registrations_bp, admin_bp, health_bp


def create_app(config_name=None):
    app = Flask(__name__)
    env_name = (config_name or os.environ.get('APP_ENV', 'default')).lower()
    config_class = config_map.get(env_name, config_map['default'])
    app.config.from_object(config_class)
    config_class.init_app(app)

    if env_name == 'production' and not app.config.get('SECRET_KEY'):
        raise RuntimeError('SECRET_KEY environment variable is required in production')

    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1)

    @app.before_request
    def start_request_timer():
        g.request_start_time = time.perf_counter()

    @app.after_request
    def log_request_time(response):
        start_time = getattr(g, 'request_start_time', None)
        if start_time is not None:
            duration_ms = (time.perf_counter() - start_time) * 1000
            app.logger.info(
                "Request %s %s took %.2fms, status %d",
                request.method,
                request.path,
                duration_ms,
                response.status_code,
            )
        return response

    # 应用启动时进行一次数据库结构检查与迁移（只增量修复，不重建）
    if app.config.get('AUTO_INIT_DB'):
        try:
            DatabaseManager(config_class).init_database(force_recreate=False)
            app.logger.info("数据库初始化成功")
        except Exception as e:
            # 记录错误但不阻止应用启动
            app.logger.error(f"数据库初始化检查失败: {e}")

    @app.errorhandler(RegistrationError)
    def handle_registration_error(error):
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(error):
        return jsonify({
            'success': False,
            'error': error.name.lower().replace(' ', '_'),
            'message': error.description
        }), error.code

    app.register_blueprint(events_bp, url_prefix='/api/events')
    app.register_blueprint(registrations_bp, url_prefix='/api/registrations')
    app.register_blueprint(admin_bp, url_prefix='/api/admin')
    app.register_blueprint(health_bp, url_prefix='/api')

    @app.route('/')
    def index():
        return jsonify({
            'success': True,
            'message': app.config['SYSTEM_NAME'],
            'data': {'version': app.config['SYSTEM_VERSION']}
        })

    @app.route('/uploads/<path:filename>')
    def uploaded_file(filename):
        return send_from_directory(app.config['UPLOAD_FOLDER'], filename)

    return app


app = create_app()


if __name__ == '__main__':
    try:
        app.run(
            host=app.config.get('HOST', '0.0.0.0'),
            port=app.config.get('PORT', 5000),
            debug=app.config.get('DEBUG', True)
        )
    except KeyboardInterrupt:
        sys.exit(0)
