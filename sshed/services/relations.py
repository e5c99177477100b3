from typing import Dict, List
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select, delete
import logging

from sshed.models import EntityKind

logger = logging.getLogger(__name__)


class RelationService:
    """Membership edges between tags/groups and hosts.

    Both mutations are idempotent: adding an existing edge and removing a
    missing one are no-ops.
    """
    def __init__(self, db: Session):
        self.db = db

    def _edge_filter(self, kind: EntityKind, member_id: int, host_id: int):
        relation = kind.relation
        return (kind.member_column == member_id, relation.host_id == host_id)

    def has_edge(self, kind: EntityKind, member_id: int, host_id: int) -> bool:
        statement = select(kind.relation).where(*self._edge_filter(kind, member_id, host_id))
        return self.db.exec(statement).first() is not None

    def add_edge(self, kind: EntityKind, member_id: int, host_id: int) -> bool:
        """Inserts the edge if absent.

        Returns:
            True if a new edge was written.
        """
        if self.has_edge(kind, member_id, host_id):
            return False
        if kind is EntityKind.TAG:
            edge = kind.relation(tag_id=member_id, host_id=host_id)
        else:
            edge = kind.relation(group_id=member_id, host_id=host_id)
        self.db.add(edge)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            # Lost a race against an identical insert
            if not self.has_edge(kind, member_id, host_id):
                raise
            return False
        return True

    def remove_edge(self, kind: EntityKind, member_id: int, host_id: int) -> bool:
        """Deletes the edge if present.

        Returns:
            True if an edge was deleted.
        """
        statement = delete(kind.relation).where(*self._edge_filter(kind, member_id, host_id))
        result = self.db.exec(statement)
        self.db.commit()
        return bool(result.rowcount)

    def edges_for_host(self, kind: EntityKind, host_id: int) -> Dict[int, str]:
        """Returns every member linked to the host, as ``{member_id: name}``."""
        model = kind.model
        statement = (
            select(model.id, model.name)
            .join(kind.relation, kind.member_column == model.id)
            .where(kind.relation.host_id == host_id)
        )
        return {member_id: name for member_id, name in self.db.exec(statement).all()}

    def hosts_for_member(self, kind: EntityKind, member_id: int) -> List[int]:
        statement = select(kind.relation.host_id).where(kind.member_column == member_id)
        return list(self.db.exec(statement).all())
