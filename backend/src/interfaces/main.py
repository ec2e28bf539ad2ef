from ..infrastructure.app_factory import create_application
from ..infrastructure.config.settings import get_settings
from ..interfaces.api import router as api_router

settings = get_settings()

app = create_application(
    router=api_router,
    settings=settings,
    summary="REST API for shared dashboard panels and variables",
    description="""
    # Library Elements API

    Library elements are panels and template variables defined once and
    reused by many dashboards.

    ## Features

    - Create, read, patch and delete library elements
    - Search by name, kind, type and folder with pagination
    - Folder permissions decide who can view and edit each element
    - Optimistic concurrency through element versions
    - Tracking of the dashboards that use each element
    """,
)
