"""Project visibility rules."""
from sqlalchemy import select
from sqlalchemy.orm import Session

from taskboard.models.database_models import Project


class ProjectPermissionService:
    """Answer who may see a project."""

    def __init__(self, db: Session):
        self.db = db

    def is_everybody_allowed(self, project_id: int) -> bool:
        """True when the project is open to every user; False for unknown projects."""
        flag = self.db.execute(
            select(Project.is_everybody_allowed).where(Project.id == project_id)
        ).scalar_one_or_none()
        return bool(flag)

