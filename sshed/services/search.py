from typing import List, Optional
from enum import Enum
from sqlmodel import Session, select
import logging

from sshed.core.config import get_settings
from sshed.models import EntityKind, Host
from sshed.schemas.host import HostDetail, HostRead, NamedRead, SearchResults
from sshed.services.entities import natural_key
from sshed.services.relations import RelationService

settings = get_settings()
logger = logging.getLogger(__name__)


class FilterMode(str, Enum):
    ALL = "all"  # Host must belong to every selected name
    ANY = "any"  # Host must belong to at least one selected name


class SearchService:
    """Read-only queries over the host graph for the presentation layer.

    Store errors are not caught here, they go straight to the caller.
    """
    def __init__(self, db: Session, limit: Optional[int] = None):
        self.db = db
        self.limit = limit if limit is not None else settings.SEARCH_LIMIT

    def _matching(self, model, pattern: str) -> list:
        statement = (
            select(model)
            .where(model.name_key.contains(pattern.lower(), autoescape=True))
            .order_by(model.name_key)
        )
        if self.limit:
            statement = statement.limit(self.limit)
        return list(self.db.exec(statement).all())

    def suggest(self, pattern: str) -> SearchResults:
        """Suggests hosts, tags and groups whose name contains ``pattern``.

        Why: Powers the search-as-you-type box. The three lists are
        independent so the user can pick a host directly or narrow down by
        tag or group first.

        Args:
            pattern: Case-insensitive substring.

        Returns:
            SearchResults with hosts, tags and groups ordered by name.
        """
        return SearchResults(
            hosts=[HostRead.model_validate(h) for h in self._matching(Host, pattern)],
            tags=[NamedRead.model_validate(t) for t in self._matching(EntityKind.TAG.model, pattern)],
            groups=[NamedRead.model_validate(g) for g in self._matching(EntityKind.GROUP.model, pattern)],
        )

    def _members_subquery(self, kind: EntityKind, names: List[str]):
        model = kind.model
        relation = kind.relation
        return (
            select(relation.host_id)
            .join(model, kind.member_column == model.id)
            .where(model.name_key.in_([natural_key(n) for n in names]))
        )

    def _apply_dimension(self, statement, kind: EntityKind, names: List[str], mode: FilterMode):
        names = [n for n in names if n and n.strip()]
        if not names:
            return statement
        if mode is FilterMode.ANY:
            return statement.where(Host.id.in_(self._members_subquery(kind, names)))
        for name in dict.fromkeys(natural_key(n) for n in names):
            statement = statement.where(Host.id.in_(self._members_subquery(kind, [name])))
        return statement

    def filtered_hosts(
        self,
        selected_groups: List[str],
        selected_tags: List[str],
        mode: FilterMode = FilterMode.ALL,
    ) -> List[Host]:
        """Returns the hosts that match the selected groups and tags.

        Groups and tags are always combined with AND. Within one dimension,
        ``FilterMode.ALL`` requires membership of every selected name and
        ``FilterMode.ANY`` of at least one. An empty selection does not
        filter that dimension, so no selection at all returns every host.
        """
        statement = select(Host).order_by(Host.name_key)
        statement = self._apply_dimension(statement, EntityKind.GROUP, selected_groups, mode)
        statement = self._apply_dimension(statement, EntityKind.TAG, selected_tags, mode)
        return list(self.db.exec(statement).all())

    def host_detail(self, host_id: int) -> Optional[HostDetail]:
        host = self.db.get(Host, host_id)
        if host is None:
            return None
        relations = RelationService(self.db)
        detail = HostDetail.model_validate(host)
        detail.tags = sorted(relations.edges_for_host(EntityKind.TAG, host_id).values(), key=str.lower)
        detail.groups = sorted(relations.edges_for_host(EntityKind.GROUP, host_id).values(), key=str.lower)
        return detail

    def member_hosts(self, kind: EntityKind, member_id: int) -> Optional[List[Host]]:
        """Returns the hosts linked to one tag or group, or None if it does not exist."""
        if self.db.get(kind.model, member_id) is None:
            return None
        host_ids = RelationService(self.db).hosts_for_member(kind, member_id)
        if not host_ids:
            return []
        statement = select(Host).where(Host.id.in_(host_ids)).order_by(Host.name_key)
        return list(self.db.exec(statement).all())
