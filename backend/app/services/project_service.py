from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import ForbiddenError, NotFoundError
from app.models.project import API_KEY_PREFIX_LENGTH, Project
from app.schemas.project import ProjectCreate, ProjectUpdate


class ProjectService:
    """Service for project CRUD operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def count_by_user(self, user_id: int) -> int:
        result = await self.db.execute(
            select(func.count()).select_from(Project).where(Project.user_id == user_id)
        )
        return int(result.scalar_one())

    async def create(self, user_id: int, data: ProjectCreate) -> tuple[Project, str]:
        """Create a project with a fresh API key.

        Returns (project, plaintext_key). Only the SHA-256 hash of the key is
        persisted.

        Raises:
            ForbiddenError: If the user already owns the maximum number of projects.
        """
        if await self.count_by_user(user_id) >= settings.MAX_PROJECTS_PER_USER:
            raise ForbiddenError(
                f"Project limit reached ({settings.MAX_PROJECTS_PER_USER} per user)"
            )

        plaintext_key = Project.generate_api_key()
        project = Project(
            user_id=user_id,
            name=data.name,
            description=data.description,
            domain=data.domain,
            api_key_hash=Project.hash_api_key(plaintext_key),
            api_key_prefix=plaintext_key[:API_KEY_PREFIX_LENGTH],
        )
        self.db.add(project)
        await self.db.flush()
        await self.db.refresh(project)
        return project, plaintext_key

    async def get(self, project_id: int, user_id: int) -> Project:
        """Get a project by ID, ensuring it belongs to the user."""
        result = await self.db.execute(select(Project).where(Project.id == project_id))
        project = result.scalar_one_or_none()
        if not project:
            raise NotFoundError("Project not found")
        if project.user_id != user_id:
            raise ForbiddenError("Not authorized to access this project")
        return project

    async def list_by_user(self, user_id: int) -> list[Project]:
        result = await self.db.execute(
            select(Project)
            .where(Project.user_id == user_id)
            .order_by(Project.created_at.desc(), Project.id.desc())
        )
        return list(result.scalars().all())

    async def update(self, project_id: int, user_id: int, data: ProjectUpdate) -> Project:
        project = await self.get(project_id, user_id)
        for field, value in data.model_dump(exclude_unset=True).items():
            setattr(project, field, value)
        await self.db.flush()
        await self.db.refresh(project)
        return project

    async def delete(self, project_id: int, user_id: int) -> None:
        project = await self.get(project_id, user_id)
        await self.db.delete(project)
        await self.db.flush()

    async def rotate_api_key(self, project_id: int, user_id: int) -> tuple[Project, str]:
        """Issue a new API key. The old key stops working immediately."""
        project = await self.get(project_id, user_id)
        plaintext_key = Project.generate_api_key()
        project.api_key_hash = Project.hash_api_key(plaintext_key)
        project.api_key_prefix = plaintext_key[:API_KEY_PREFIX_LENGTH]
        await self.db.flush()
        await self.db.refresh(project)
        return project, plaintext_key

    async def get_by_api_key(self, api_key: str) -> Project | None:
        """Look up a project by the hash of its API key."""
        key_hash = Project.hash_api_key(api_key)
        result = await self.db.execute(select(Project).where(Project.api_key_hash == key_hash))
        return result.scalar_one_or_none()
