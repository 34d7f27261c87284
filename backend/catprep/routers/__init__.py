"""API routers for the CAT Prep application."""

from .admin import router as admin_router
from .questions import router as questions_router
from .subjects import router as subjects_router
from .tests import router as tests_router
from .users import router as users_router

__all__ = [
    "admin_router",
    "questions_router",
    "subjects_router",
    "tests_router",
    "users_router",
]
