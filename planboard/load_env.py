import logging
import os
import pathlib

import decouple

logger = logging.getLogger(__name__)

ENVIRONMENT = os.getenv("ENVIRONMENT", default="DEVELOPMENT")


def get_env_config() -> decouple.Config:
    """
    Creates and returns a Config object based on the environment setting.
    It uses .env.dev for development and .env for production.
    Without an env file only the process environment is consulted.
    """
    env_files = {
        "DEVELOPMENT": ".env.dev",
        "PRODUCTION": ".env",
    }

    app_dir_path = pathlib.Path(__file__).resolve().parent.parent
    env_file_name = env_files.get(ENVIRONMENT, ".env.dev")
    file_path = app_dir_path / env_file_name

    if not file_path.is_file():
        logger.debug(f"Environment file not found: {file_path}, using process environment")
        return decouple.Config(decouple.RepositoryEmpty())

    return decouple.Config(decouple.RepositoryEnv(file_path))


def get_db_string(config: decouple.Config) -> str:
    """Async SQLAlchemy URL of the task store"""
    database_url = config.get('DATABASE_URL', default=None)
    if database_url:
        return database_url

    if ENVIRONMENT == 'PRODUCTION':
        db_name = config.get('POSTGRES_DB')
        db_user = config.get('POSTGRES_USER')
        db_pass = config.get('POSTGRES_PASSWORD')
        db_host = config.get('POSTGRES_HOST', default='postgres')
        db_port = config.get('POSTGRES_PORT', default='5432')
        return 'postgresql+asyncpg://{}:{}@{}:{}/{}'.format(db_user, db_pass, db_host, db_port, db_name)

    return 'sqlite+aiosqlite:///local.db'


env_config = get_env_config()
LOGGER_LEVEL = env_config.get('LOGGER_LEVEL', default='INFO')
db_string = get_db_string(env_config)

NOTIFICATION_LOCALE = env_config.get('NOTIFICATION_LOCALE', default='he')
DISPLAY_TIMEZONE = env_config.get('DISPLAY_TIMEZONE', default='Asia/Jerusalem')
NOTIFICATIONS_DEDUPLICATE = env_config.get('NOTIFICATIONS_DEDUPLICATE', default='False', cast=bool)
NOTIFICATION_INBOX_LIMIT = env_config.get('NOTIFICATION_INBOX_LIMIT', default=50, cast=int)
REMINDER_POLL_INTERVAL = env_config.get('REMINDER_POLL_INTERVAL', default=60, cast=int)
REMINDER_WINDOW_MINUTES = env_config.get('REMINDER_WINDOW_MINUTES', default=5, cast=int)
SQL_ECHO = env_config.get('SQL_ECHO', default='False', cast=bool)
