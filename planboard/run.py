import asyncio
import logging.config
import pathlib

from flask import Flask
from flask_cors import CORS
from flask_jwt_extended import JWTManager
from pydantic import ValidationError

from planboard.exceptions import InvalidPayloadError
from planboard.load_env import env_config, ENVIRONMENT
from planboard.utils import error_response

LOGGING_INI = pathlib.Path(__file__).resolve().parent.parent / 'logging.ini'
if LOGGING_INI.is_file():
    logging.config.fileConfig(fname=LOGGING_INI, disable_existing_loggers=False)
logging.getLogger('aiosqlite').propagate = False

logger = logging.getLogger(__name__)


def register_error_handlers(app: Flask):
    @app.errorhandler(InvalidPayloadError)
    def handle_invalid_payload(e: InvalidPayloadError):
        logger.warning(f"Invalid request: {e.message}")
        return error_response(e.message, 400)

    @app.errorhandler(ValidationError)
    def handle_validation_error(e: ValidationError):
        logger.warning(f"Invalid request body: {e}")
        return error_response(str(e), 400)


def create_app(test_config: dict = None):
    """Create and configure an instance of the Flask application."""
    app = Flask(__name__, instance_relative_config=True)

    CORS(app,
         resources={
             r"/api/*": {
                 "origins": ["http://localhost:3000", env_config.get('FRONTEND_URL', default='http://localhost:5173')],
                 "methods": ["GET", "POST", "PUT", "DELETE", "OPTIONS"],
                 "allow_headers": ["Content-Type", "Authorization"],
                 "supports_credentials": True,
             }
         },
         allow_headers=["Content-Type", "Authorization"],
         supports_credentials=True
    )

    app.config.from_mapping(
        SECRET_KEY=env_config.get('SECRET_KEY', default='dev'),
        JWT_SECRET_KEY=env_config.get('JWT_SECRET_KEY', default='dev-jwt-secret'),
        JWT_ACCESS_TOKEN_EXPIRES=3600,  # 1 hour
        JWT_TOKEN_LOCATION=["headers"],
        JWT_HEADER_NAME="Authorization",
        JWT_HEADER_TYPE="Bearer"
    )
    if test_config:
        app.config.update(test_config)

    # apply the blueprints to the app
    from planboard.blueprints import notifications_bp, reminders_bp, dependencies_bp, health_bp
    app.register_blueprint(notifications_bp)
    app.register_blueprint(reminders_bp)
    app.register_blueprint(dependencies_bp)
    app.register_blueprint(health_bp)
    register_error_handlers(app)

    JWTManager(app)
    return app


def create_app_wsgi():
    """Создание Flask приложения для запуска через Gunicorn"""
    return create_app()


if __name__ == '__main__':
    app = create_app()
    if ENVIRONMENT == "DEVELOPMENT":
        # локальная SQLite база: создаём таблицы
        from planboard.database import init_db
        asyncio.run(init_db())
    try:
        app.run(host='0.0.0.0', port=5000, debug=ENVIRONMENT == "DEVELOPMENT", use_reloader=False)
    except KeyboardInterrupt:
        logger.info('Клавиатурное прерывание')
    finally:
        logger.info('Приложение остановлено')
