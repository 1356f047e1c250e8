"""
FastAPI dependencies - services are built once in create_app() and live on app.state
"""

from fastapi import Request

from school_records.api.services.grading_service import GradingService
from school_records.api.services.identifier_service import IdentifierService
from school_records.config import Settings


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_identifier_service(request: Request) -> IdentifierService:
    return request.app.state.identifier_service


def get_grading_service(request: Request) -> GradingService:
    return request.app.state.grading_service
