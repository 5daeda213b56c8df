from __future__ import annotations

from fastapi import APIRouter, Query, Request, status

from app.api.deps import CurrentUser, DbDep, OptionalUser
from .schemas import (
    ClickRequest,
    ClickResponse,
    LinkAnalytics,
    LinkCreate,
    LinkRead,
    LinkUpdate,
    OverviewAnalytics,
    ReorderRequest,
    ReorderResponse,
)
from .service import LinksService


router = APIRouter(prefix="/links", tags=["links"])


@router.get("/me", response_model=list[LinkRead])
def list_my_links(db: DbDep, current: CurrentUser):
    return LinksService(db).list_my_links(current)


@router.get("/user/{user_id}", response_model=list[LinkRead])
def list_user_links(user_id: str, db: DbDep, viewer: OptionalUser):
    return LinksService(db).list_user_links(user_id, viewer)


@router.post("", response_model=LinkRead, status_code=status.HTTP_201_CREATED)
def create_link(payload: LinkCreate, db: DbDep, current: CurrentUser):
    return LinksService(db).create_link(current, payload)


@router.patch("/{link_id}", response_model=LinkRead)
def update_link(link_id: str, payload: LinkUpdate, db: DbDep, current: CurrentUser):
    return LinksService(db).update_link(current, link_id, payload)


@router.delete("/{link_id}")
def delete_link(link_id: str, db: DbDep, current: CurrentUser):
    LinksService(db).delete_link(current, link_id)
    return {"success": True}


@router.post("/reorder", response_model=ReorderResponse)
def reorder_links(payload: ReorderRequest, db: DbDep, current: CurrentUser):
    return LinksService(db).reorder_links(current, payload)


@router.post("/{link_id}/click", response_model=ClickResponse)
def track_click(link_id: str, request: Request, db: DbDep, payload: ClickRequest | None = None):
    data = payload or ClickRequest()
    if data.user_agent is None:
        data.user_agent = request.headers.get("user-agent")
    if data.referrer is None:
        data.referrer = request.headers.get("referer")
    return LinksService(db).track_click(link_id, data)


@router.get("/analytics/overview", response_model=OverviewAnalytics)
def overview_analytics(db: DbDep, current: CurrentUser, days: int = Query(default=30, ge=1, le=365)):
    return LinksService(db).overview_analytics(current, days)


@router.get("/{link_id}/analytics", response_model=LinkAnalytics)
def link_analytics(
    link_id: str,
    db: DbDep,
    current: CurrentUser,
    days: int = Query(default=30, ge=1, le=365),
):
    return LinksService(db).link_analytics(current, link_id, days)
