from typing import Annotated

from fastapi import APIRouter, Depends

from firepit.api.dependencies import get_version_service
from firepit.schemas.requests import VersionInfo
from firepit.services.version_service import VersionService

router = APIRouter(tags=["Version"])


@router.get("/version", response_model=VersionInfo)
async def get_version(
    versions: Annotated[VersionService, Depends(get_version_service)],
) -> VersionInfo:
    """Compare the running version with the latest GitHub release.

    Always answers 200; when the release feed is unavailable
    ``latestVersion`` is ``"unknown"`` and ``error`` explains why.
    """
    return await versions.get_version_info()
