import logging

from flask import Blueprint, request, jsonify
from flask_cors import cross_origin
from flask_jwt_extended import jwt_required, get_jwt_identity

from planboard.blueprints.wrapper import async_route
from planboard.database import get_session
from planboard.models.reminder import ReminderCreate
from planboard.services.reminder_service import ReminderService
from planboard.utils import parse_uuid, error_response

bp = Blueprint("reminders", __name__)
logger = logging.getLogger(__name__)


@bp.route('/api/project-tasks/<string:project_task_id>/reminders', methods=['GET', 'OPTIONS'])
@cross_origin()
@jwt_required()
@async_route
async def get_task_reminders(project_task_id):
    """Напоминания задачи проекта"""
    if request.method == 'OPTIONS':
        return '', 200

    async with get_session() as session:
        reminders = await ReminderService(session).list_for_task(parse_uuid(project_task_id, 'project task id'))
    return jsonify({'reminders': reminders})


@bp.route('/api/project-tasks/<string:project_task_id>/reminders', methods=['POST', 'OPTIONS'])
@cross_origin()
@jwt_required()
@async_route
async def create_reminder(project_task_id):
    """Создать напоминание"""
    if request.method == 'OPTIONS':
        return '', 200
    user_id = parse_uuid(get_jwt_identity(), 'user id')
    reminder_data = ReminderCreate.model_validate(request.get_json(silent=True) or {})

    async with get_session() as session:
        reminder = await ReminderService(session).create(
            user_id, parse_uuid(project_task_id, 'project task id'), reminder_data
        )
    if not reminder:
        return error_response('Project task not found', 404)
    return jsonify(reminder), 201


@bp.route('/api/reminders/<string:reminder_id>/toggle', methods=['POST', 'OPTIONS'])
@cross_origin()
@jwt_required()
@async_route
async def toggle_reminder(reminder_id):
    if request.method == 'OPTIONS':
        return '', 200
    user_id = parse_uuid(get_jwt_identity(), 'user id')

    async with get_session() as session:
        reminder = await ReminderService(session).toggle(user_id, parse_uuid(reminder_id))
    if not reminder:
        return error_response('Reminder not found', 404)
    return jsonify(reminder)


@bp.route('/api/reminders/<string:reminder_id>/deactivate', methods=['POST', 'OPTIONS'])
@cross_origin()
@jwt_required()
@async_route
async def deactivate_reminder(reminder_id):
    """Отметить напоминание сработавшим (is_active=false), можно вызывать повторно"""
    if request.method == 'OPTIONS':
        return '', 200
    user_id = parse_uuid(get_jwt_identity(), 'user id')

    async with get_session() as session:
        found = await ReminderService(session).deactivate(parse_uuid(reminder_id), user_id)
    if not found:
        return error_response('Reminder not found', 404)
    return '', 204


@bp.route('/api/reminders/<string:reminder_id>', methods=['DELETE', 'OPTIONS'])
@cross_origin()
@jwt_required()
@async_route
async def delete_reminder(reminder_id):
    if request.method == 'OPTIONS':
        return '', 200
    user_id = parse_uuid(get_jwt_identity(), 'user id')

    async with get_session() as session:
        success = await ReminderService(session).delete(user_id, parse_uuid(reminder_id))
    if not success:
        return error_response('Reminder not found', 404)
    return '', 204


@bp.route('/api/reminders/due', methods=['GET', 'OPTIONS'])
@cross_origin()
@jwt_required()
@async_route
async def get_due_reminders():
    """
    Активные напоминания пользователя в окне последних минут.
    Только чтение: показав напоминание, клиент вызывает POST /api/reminders/<id>/deactivate.
    """
    if request.method == 'OPTIONS':
        return '', 200
    user_id = parse_uuid(get_jwt_identity(), 'user id')

    async with get_session() as session:
        due = await ReminderService(session).get_due(user_id=user_id)
    return jsonify({'reminders': [r.model_dump(mode='json') for r in due]})
