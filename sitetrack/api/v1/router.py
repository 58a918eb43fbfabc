from fastapi import APIRouter

from sitetrack.api.v1.auth import router as auth_router
from sitetrack.api.v1.dashboard import router as dashboard_router
from sitetrack.api.v1.media import router as media_router
from sitetrack.api.v1.milestones import router as milestones_router
from sitetrack.api.v1.phases import router as phases_router
from sitetrack.api.v1.projects import router as projects_router
from sitetrack.api.v1.tasks import router as tasks_router
from sitetrack.api.v1.timeline import router as timeline_router
from sitetrack.api.v1.users import router as users_router

v1_router = APIRouter()

v1_router.include_router(auth_router)
v1_router.include_router(users_router)
v1_router.include_router(projects_router)
v1_router.include_router(phases_router)
v1_router.include_router(tasks_router)
v1_router.include_router(media_router)
v1_router.include_router(milestones_router)
v1_router.include_router(timeline_router)
v1_router.include_router(dashboard_router)
