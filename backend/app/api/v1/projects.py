from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user
from app.core.config import settings
from app.core.limiter import limiter
from app.db.session import get_db
from app.models.project import Project
from app.models.user import User
from app.schemas.project import (
    ProjectCreate,
    ProjectCreateResponse,
    ProjectResponse,
    ProjectUpdate,
)
from app.services.project_service import ProjectService

router = APIRouter()


def _with_key(project: Project, api_key: str) -> ProjectCreateResponse:
    data = ProjectResponse.model_validate(project).model_dump()
    return ProjectCreateResponse(**data, api_key=api_key)


@router.post("/", response_model=ProjectCreateResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(f"{settings.RATE_LIMIT_PER_MINUTE}/minute")
async def create_project(
    request: Request,
    data: ProjectCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Create a new project. The plaintext API key is only returned here."""
    project, api_key = await ProjectService(db).create(user_id=current_user.id, data=data)
    return _with_key(project, api_key)


@router.get("/", response_model=list[ProjectResponse])
@limiter.limit(f"{settings.RATE_LIMIT_PER_MINUTE}/minute")
async def list_projects(
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """List all projects for the current user."""
    return await ProjectService(db).list_by_user(user_id=current_user.id)


@router.get("/{project_id}", response_model=ProjectResponse)
@limiter.limit(f"{settings.RATE_LIMIT_PER_MINUTE}/minute")
async def get_project(
    request: Request,
    project_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return await ProjectService(db).get(project_id=project_id, user_id=current_user.id)


@router.patch("/{project_id}", response_model=ProjectResponse)
@limiter.limit(f"{settings.RATE_LIMIT_PER_MINUTE}/minute")
async def update_project(
    request: Request,
    project_id: int,
    data: ProjectUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return await ProjectService(db).update(
        project_id=project_id, user_id=current_user.id, data=data
    )


@router.delete("/{project_id}", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit(f"{settings.RATE_LIMIT_PER_MINUTE}/minute")
async def delete_project(
    request: Request,
    project_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Delete a project and all of its events."""
    await ProjectService(db).delete(project_id=project_id, user_id=current_user.id)
    return None


@router.post("/{project_id}/rotate-key", response_model=ProjectCreateResponse)
@limiter.limit(f"{settings.RATE_LIMIT_PER_MINUTE}/minute")
async def rotate_api_key(
    request: Request,
    project_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Rotate the API key for a project."""
    project, api_key = await ProjectService(db).rotate_api_key(
        project_id=project_id, user_id=current_user.id
    )
    return _with_key(project, api_key)
