# Request-scoped accessors for the services wired up in main.create_app

from fastapi import Request

from clipconvert.core.config import Settings
from clipconvert.services.job_service import JobService


def get_job_service(request: Request) -> JobService:
    return request.app.state.job_service


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings
