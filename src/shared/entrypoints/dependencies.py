"""Request-scoped dependencies shared by the API routers."""

from typing import Optional

from fastapi import Header, Request

from shared.bootstrap import Container


def get_container(request: Request) -> Container:
    return request.app.state.container


def current_user_id(x_user_id: int = Header(..., description="Authenticated user id")) -> int:
    return x_user_id


def optional_user_id(x_user_id: Optional[int] = Header(None, description="Authenticated user id")) -> Optional[int]:
    return x_user_id


def current_organization_id(
    x_organization_id: int = Header(..., description="Organization of the authenticated user"),
) -> int:
    return x_organization_id
