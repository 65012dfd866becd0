import logging

from flask import Blueprint, request, jsonify
from flask_cors import cross_origin
from flask_jwt_extended import jwt_required

from planboard.blueprints.wrapper import async_route
from planboard.database import get_session
from planboard.models.dependency import DependencyCreate
from planboard.services.dependency_service import DependencyService
from planboard.utils import parse_uuid, error_response

bp = Blueprint("dependencies", __name__)
logger = logging.getLogger(__name__)


@bp.route('/api/projects/<string:project_id>/tasks/<string:task_id>/dependencies', methods=['GET', 'OPTIONS'])
@cross_origin()
@jwt_required()
@async_route
async def get_dependencies(project_id, task_id):
    """Зависимости задачи в проекте"""
    if request.method == 'OPTIONS':
        return '', 200

    async with get_session() as session:
        dependencies = await DependencyService(session).list_for_task(
            parse_uuid(project_id, 'project id'), parse_uuid(task_id, 'task id')
        )
    return jsonify({'dependencies': dependencies})


@bp.route('/api/projects/<string:project_id>/tasks/<string:task_id>/dependencies', methods=['POST', 'OPTIONS'])
@cross_origin()
@jwt_required()
@async_route
async def create_dependency(project_id, task_id):
    """Добавить зависимость; тип связи по умолчанию finish_to_start"""
    if request.method == 'OPTIONS':
        return '', 200
    payload = request.get_json(silent=True) or {}
    dependency_data = DependencyCreate.model_validate({
        **payload,
        'project_id': parse_uuid(project_id, 'project id'),
        'task_id': parse_uuid(task_id, 'task id'),
    })

    async with get_session() as session:
        dependency = await DependencyService(session).create(dependency_data)
    return jsonify(dependency), 201


@bp.route('/api/dependencies/<string:dependency_id>', methods=['DELETE', 'OPTIONS'])
@cross_origin()
@jwt_required()
@async_route
async def delete_dependency(dependency_id):
    if request.method == 'OPTIONS':
        return '', 200

    async with get_session() as session:
        success = await DependencyService(session).delete(parse_uuid(dependency_id))
    if not success:
        return error_response('Dependency not found', 404)
    return '', 204
