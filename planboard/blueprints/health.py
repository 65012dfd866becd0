import logging

from flask import Blueprint, jsonify
from flask_cors import cross_origin
from sqlalchemy import text

from planboard.blueprints.wrapper import async_route
from planboard.database import get_session

bp = Blueprint("health", __name__)

logger = logging.getLogger(__name__)


@bp.route('/api/health', methods=['GET', 'OPTIONS'])
@cross_origin()
@async_route
async def health_check():
    """Проверка API и доступности хранилища (Docker healthcheck)"""
    logger.debug("Health check requested")
    try:
        async with get_session() as session:
            await session.execute(text("SELECT 1"))
    except Exception as e:
        logger.error(f"Database is unavailable: {e}")
        return jsonify({"status": "error", "message": "Database is unavailable"}), 503
    return jsonify({"status": "ok", "message": "API is up and running"}), 200
