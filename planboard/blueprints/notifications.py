import logging

from flask import Blueprint, request, jsonify
from flask_cors import cross_origin
from flask_jwt_extended import jwt_required, get_jwt_identity

from planboard.blueprints.wrapper import async_route
from planboard.database import get_session
from planboard.load_env import NOTIFICATIONS_DEDUPLICATE, NOTIFICATION_INBOX_LIMIT
from planboard.services.notification_service import NotificationService
from planboard.services.task_notifications import TaskNotificationEvaluator
from planboard.utils import parse_uuid, error_response

bp = Blueprint("notifications", __name__)
logger = logging.getLogger(__name__)

FUNCTION_CORS_HEADERS = ['authorization', 'x-client-info', 'apikey', 'content-type']


@bp.route('/functions/task-notifications', methods=['GET', 'POST', 'OPTIONS'])
@cross_origin(origins='*', send_wildcard=True, allow_headers=FUNCTION_CORS_HEADERS)
@async_route
async def run_task_notifications():
    """Один проход проверки сроков и зависимостей; вызывается планировщиком"""
    if request.method == 'OPTIONS':
        return '', 200

    try:
        async with get_session() as session:
            evaluator = TaskNotificationEvaluator(session, deduplicate=NOTIFICATIONS_DEDUPLICATE)
            created = await evaluator.run()
    except Exception as e:
        logger.exception(f"Error in task-notifications function: {e}")
        return jsonify({'error': str(e) or 'Unknown error'}), 500

    return jsonify({
        'success': True,
        'notificationsCreated': created,
        'message': f"Created {created} notifications",
    }), 200


@bp.route('/api/notifications/', methods=['GET', 'OPTIONS'])
@cross_origin()
@jwt_required()
@async_route
async def get_notifications():
    """Последние уведомления текущего пользователя"""
    if request.method == 'OPTIONS':
        return '', 200
    user_id = parse_uuid(get_jwt_identity(), 'user id')

    try:
        limit = int(request.args.get('limit', NOTIFICATION_INBOX_LIMIT))
    except ValueError:
        return error_response('limit must be an integer', 400)
    if limit < 1:
        return error_response('limit must be positive', 400)

    async with get_session() as session:
        notification_service = NotificationService(session)
        notifications = await notification_service.list_for_user(user_id, limit)
        unread = await notification_service.unread_count(user_id)

    return jsonify({'notifications': notifications, 'unread': unread})


@bp.route('/api/notifications/<string:notification_id>/read', methods=['POST', 'OPTIONS'])
@cross_origin()
@jwt_required()
@async_route
async def mark_notification_read(notification_id):
    if request.method == 'OPTIONS':
        return '', 200
    user_id = parse_uuid(get_jwt_identity(), 'user id')

    async with get_session() as session:
        success = await NotificationService(session).mark_as_read(user_id, parse_uuid(notification_id))
    if not success:
        return error_response('Notification not found', 404)
    return '', 204


@bp.route('/api/notifications/read-all', methods=['POST', 'OPTIONS'])
@cross_origin()
@jwt_required()
@async_route
async def mark_all_notifications_read():
    if request.method == 'OPTIONS':
        return '', 200
    user_id = parse_uuid(get_jwt_identity(), 'user id')

    async with get_session() as session:
        updated = await NotificationService(session).mark_all_as_read(user_id)
    return jsonify({'updated': updated})


@bp.route('/api/notifications/<string:notification_id>', methods=['DELETE', 'OPTIONS'])
@cross_origin()
@jwt_required()
@async_route
async def delete_notification(notification_id):
    if request.method == 'OPTIONS':
        return '', 200
    user_id = parse_uuid(get_jwt_identity(), 'user id')

    async with get_session() as session:
        success = await NotificationService(session).delete(user_id, parse_uuid(notification_id))
    if not success:
        return error_response('Notification not found', 404)
    return '', 204
