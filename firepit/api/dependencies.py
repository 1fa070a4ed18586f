"""Accessors for the per-app service instances created by the app factory."""

from __future__ import annotations

from fastapi import Request

from firepit.services.role_service import RoleService
from firepit.services.version_service import VersionService


def get_role_service(request: Request) -> RoleService:
    return request.app.state.role_service


def get_version_service(request: Request) -> VersionService:
    return request.app.state.version_service
