"""
Request-scoped access to the collaborators built in the app lifespan.
Overridden in tests through ``app.dependency_overrides``.
"""

from fastapi import Request

from storecomms.config import Settings
from storecomms.services.announcement_service import AnnouncementService
from storecomms.services.directory_cache import DirectoryCache
from storecomms.services.history_service import HistoryService
from storecomms.services.staffbase.client import StaffbaseClient
from storecomms.services.user_import_service import UserImportService


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_staffbase_client(request: Request) -> StaffbaseClient:
    return request.app.state.staffbase_client


def get_directory_cache(request: Request) -> DirectoryCache:
    return request.app.state.directory_cache


def get_user_import_service(request: Request) -> UserImportService:
    return request.app.state.user_import_service


def get_announcement_service(request: Request) -> AnnouncementService:
    return request.app.state.announcement_service


def get_history_service(request: Request) -> HistoryService:
    return request.app.state.history_service
