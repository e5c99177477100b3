from sqlmodel import Session
from typing import Generator
from fastapi import Depends
from sshed.core.database import engine, get_session
from sshed.services import SearchService, SyncService

sync_service = SyncService(get_session)


def get_db() -> Generator[Session, None, None]:
    with Session(engine) as session:
        yield session

def get_search_service(db: Session = Depends(get_db)) -> SearchService:
    return SearchService(db)

def get_sync_service() -> SyncService:
    return sync_service
