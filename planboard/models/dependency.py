import uuid

from pydantic import BaseModel

from planboard.db.models import DependencyType


class DependencyCreate(BaseModel):
    project_id: uuid.UUID
    task_id: uuid.UUID
    depends_on_task_id: uuid.UUID
    dependency_type: DependencyType = DependencyType.FINISH_TO_START
