from __future__ import annotations

from fastapi import APIRouter, Query, status
from fastapi.responses import JSONResponse, RedirectResponse

from app.api.deps import CurrentUser, DbDep
from .schemas import (
    ShortLinkCreate,
    ShortLinkFilter,
    ShortLinkList,
    ShortLinkRead,
    ShortLinkSort,
    ShortLinkStats,
    ShortLinkUpdate,
)
from .service import ShortenerService


router = APIRouter(prefix="/shortener", tags=["shortener"])

# Redirects live at the site root so short URLs stay short
public_router = APIRouter(tags=["shortener"])


@router.get("", response_model=ShortLinkList)
def list_my_short_links(
    db: DbDep,
    current: CurrentUser,
    status_filter: ShortLinkFilter = Query(default="all", alias="filter"),
    search: str | None = Query(default=None, max_length=100),
    sort: ShortLinkSort = "newest",
):
    return ShortenerService(db).list_my_short_links(current, status=status_filter, search=search, sort=sort)


@router.get("/stats", response_model=ShortLinkStats)
def short_link_stats(db: DbDep, current: CurrentUser):
    return ShortenerService(db).stats(current)


@router.post("", response_model=ShortLinkRead, status_code=status.HTTP_201_CREATED)
def create_short_link(payload: ShortLinkCreate, db: DbDep, current: CurrentUser):
    return ShortenerService(db).create_short_link(current, payload)


@router.patch("/{link_id}", response_model=ShortLinkRead)
def update_short_link(link_id: str, payload: ShortLinkUpdate, db: DbDep, current: CurrentUser):
    return ShortenerService(db).update_short_link(current, link_id, payload)


@router.delete("/{link_id}")
def delete_short_link(link_id: str, db: DbDep, current: CurrentUser):
    ShortenerService(db).delete_short_link(current, link_id)
    return {"success": True}


@public_router.get("/s/{code}", include_in_schema=False)
def follow_short_link(code: str, db: DbDep):
    target = ShortenerService(db).resolve(code)
    if not target:
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": "Link not found"})
    return RedirectResponse(target, status_code=status.HTTP_302_FOUND)
