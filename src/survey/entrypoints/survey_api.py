"""
Survey API - thin router translating HTTP calls to SurveyService operations.
"""
import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends

from shared.bootstrap import Container
from shared.entrypoints.dependencies import (
    current_organization_id,
    current_user_id,
    get_container,
    optional_user_id,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/surveys", tags=["surveys"])


@router.post("", status_code=201)
async def create_survey(
    payload: Dict[str, Any] = Body(...),
    user_id: int = Depends(current_user_id),
    organization_id: int = Depends(current_organization_id),
    container: Container = Depends(get_container),
):
    return await container.survey_service.create_survey(payload, organization_id, user_id)


@router.get("/{survey_id}")
async def get_survey(
    survey_id: int,
    organization_id: int = Depends(current_organization_id),
    container: Container = Depends(get_container),
):
    return await container.survey_service.get_survey(survey_id, organization_id)


@router.patch("/{survey_id}")
async def update_survey(
    survey_id: int,
    payload: Dict[str, Any] = Body(...),
    user_id: int = Depends(current_user_id),
    organization_id: int = Depends(current_organization_id),
    container: Container = Depends(get_container),
):
    return await container.survey_service.update_survey(survey_id, payload, organization_id, user_id)


@router.post("/{survey_id}/publish")
async def publish_survey(
    survey_id: int,
    payload: Optional[Dict[str, Any]] = Body(None),
    user_id: int = Depends(current_user_id),
    organization_id: int = Depends(current_organization_id),
    container: Container = Depends(get_container),
):
    total_recipients = (payload or {}).get("total_recipients")
    return await container.survey_service.publish_survey(
        survey_id, organization_id, user_id, total_recipients=total_recipients
    )


@router.delete("/{survey_id}")
async def delete_survey(
    survey_id: int,
    user_id: int = Depends(current_user_id),
    organization_id: int = Depends(current_organization_id),
    container: Container = Depends(get_container),
):
    deleted = await container.survey_service.delete_survey(survey_id, organization_id, user_id)
    return {"survey_id": survey_id, "deleted": deleted}


@router.post("/{survey_id}/responses", status_code=201)
async def submit_survey_response(
    survey_id: int,
    payload: Dict[str, Any] = Body(...),
    user_id: Optional[int] = Depends(optional_user_id),
    organization_id: int = Depends(current_organization_id),
    container: Container = Depends(get_container),
):
    data = {**payload, "survey_id": survey_id}
    return await container.survey_service.submit_survey_response(data, user_id, organization_id)


@router.get("/{survey_id}/analytics")
async def get_survey_analytics(
    survey_id: int,
    user_id: int = Depends(current_user_id),
    organization_id: int = Depends(current_organization_id),
    container: Container = Depends(get_container),
):
    return await container.survey_service.generate_survey_analytics(survey_id, organization_id, user_id)
