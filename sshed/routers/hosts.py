from typing import List
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlmodel import Session
from sshed.dependencies import get_db, get_search_service
from sshed.models import EntityKind
from sshed.schemas.host import HostDetail, HostRead, NamedRead, SearchResults
from sshed.services import EntityService, SearchService, FilterMode

router = APIRouter(prefix="/api")


@router.get("/search", response_model=SearchResults)
def search(
    q: str = "",
    search_service: SearchService = Depends(get_search_service),
) -> SearchResults:
    """Returns hosts, tags and groups whose name contains ``q``.

    Args:
        q: Case-insensitive substring. An empty string matches everything.
        search_service: Injected search service.

    Returns:
        Three independent suggestion lists.
    """
    return search_service.suggest(q)


@router.get("/hosts", response_model=List[HostRead])
def list_hosts(
    group: List[str] = Query(default=[]),
    tag: List[str] = Query(default=[]),
    mode: FilterMode = FilterMode.ALL,
    search_service: SearchService = Depends(get_search_service),
):
    """Lists hosts filtered by group and tag membership.

    Why: Repeating ``group`` or ``tag`` narrows the result; with
    ``mode=any`` a host only needs one of the names per dimension.
    """
    return search_service.filtered_hosts(group, tag, mode=mode)


@router.get("/hosts/{host_id}", response_model=HostDetail)
def get_host(host_id: int, search_service: SearchService = Depends(get_search_service)):
    detail = search_service.host_detail(host_id)
    if detail is None:
        raise HTTPException(status_code=404, detail="Host not found")
    return detail


@router.get("/tags", response_model=List[NamedRead])
def list_tags(db: Session = Depends(get_db)):
    return EntityService(db).list_all(EntityKind.TAG)


@router.get("/groups", response_model=List[NamedRead])
def list_groups(db: Session = Depends(get_db)):
    return EntityService(db).list_all(EntityKind.GROUP)


@router.get("/tags/{tag_id}/hosts", response_model=List[HostRead])
def list_tag_hosts(tag_id: int, search_service: SearchService = Depends(get_search_service)):
    hosts = search_service.member_hosts(EntityKind.TAG, tag_id)
    if hosts is None:
        raise HTTPException(status_code=404, detail="Tag not found")
    return hosts


@router.get("/groups/{group_id}/hosts", response_model=List[HostRead])
def list_group_hosts(group_id: int, search_service: SearchService = Depends(get_search_service)):
    hosts = search_service.member_hosts(EntityKind.GROUP, group_id)
    if hosts is None:
        raise HTTPException(status_code=404, detail="Group not found")
    return hosts
