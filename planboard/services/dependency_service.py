import logging
import uuid
from collections import defaultdict, deque
from typing import Any, Dict, List

from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession

from planboard.db.models import TaskDependency, Task
from planboard.exceptions import DependencyCycleError
from planboard.models.dependency import DependencyCreate

logger = logging.getLogger(__name__)


class DependencyService:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def list_for_task(self, project_id: uuid.UUID, task_id: uuid.UUID) -> List[Dict[str, Any]]:
        """Зависимости задачи в проекте вместе с названием предшествующей задачи"""
        result = await self.session.execute(
            select(TaskDependency, Task.name)
            .join(Task, TaskDependency.depends_on_task_id == Task.id)
            .where(TaskDependency.project_id == project_id, TaskDependency.task_id == task_id)
        )
        return [
            {
                'id': str(dependency.id),
                'project_id': str(dependency.project_id),
                'task_id': str(dependency.task_id),
                'depends_on_task_id': str(dependency.depends_on_task_id),
                'dependency_type': dependency.dependency_type,
                'task_name': task_name,
            }
            for dependency, task_name in result.all()
        ]

    async def create(self, data: DependencyCreate) -> Dict[str, Any]:
        """
        Создать зависимость task_id -> depends_on_task_id

        Raises:
            DependencyCycleError: задача зависит от самой себя или ребро замыкает цикл
        """
        if data.task_id == data.depends_on_task_id:
            raise DependencyCycleError("A task cannot depend on itself")

        if await self._reaches(data.project_id, data.depends_on_task_id, data.task_id):
            raise DependencyCycleError(
                f"Task {data.depends_on_task_id} already depends on {data.task_id} in project {data.project_id}"
            )

        dependency = TaskDependency(
            project_id=data.project_id,
            task_id=data.task_id,
            depends_on_task_id=data.depends_on_task_id,
            dependency_type=data.dependency_type.value,
        )
        self.session.add(dependency)
        await self.session.commit()
        await self.session.refresh(dependency)
        logger.info(f"Dependency {dependency.task_id} -> {dependency.depends_on_task_id} created")
        return {
            'id': str(dependency.id),
            'project_id': str(dependency.project_id),
            'task_id': str(dependency.task_id),
            'depends_on_task_id': str(dependency.depends_on_task_id),
            'dependency_type': dependency.dependency_type,
        }

    async def delete(self, dependency_id: uuid.UUID) -> bool:
        result = await self.session.execute(delete(TaskDependency).where(TaskDependency.id == dependency_id))
        await self.session.commit()
        return result.rowcount > 0

    async def _reaches(self, project_id: uuid.UUID, start: uuid.UUID, target: uuid.UUID) -> bool:
        """Есть ли путь по существующим рёбрам проекта от start к target"""
        result = await self.session.execute(
            select(TaskDependency.task_id, TaskDependency.depends_on_task_id)
            .where(TaskDependency.project_id == project_id)
        )
        edges = defaultdict(set)
        for task_id, depends_on in result.all():
            edges[task_id].add(depends_on)

        queue = deque([start])
        visited = {start}
        while queue:
            current = queue.popleft()
            if current == target:
                return True
            for nxt in edges[current] - visited:
                visited.add(nxt)
                queue.append(nxt)
        return False
