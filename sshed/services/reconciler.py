from typing import List, Optional
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session
import logging

from sshed.core.errors import HostParseError, StoreError
from sshed.models import EntityKind
from sshed.schemas.host import ParsedHost
from sshed.schemas.sync import BlockError, ReconcileReport
from sshed.services.entities import EntityService, natural_key
from sshed.services.extractor import BlockExtractor, ExtractedBlock
from sshed.services.parser import parse_host_block
from sshed.services.relations import RelationService

logger = logging.getLogger(__name__)


class ReconcileService:
    """Converges the stored host graph onto the content of one config file.

    Each block is handled on its own: a store failure aborts that block only
    and is reported, earlier blocks stay committed and later blocks still
    run. Hosts that vanished from the file are left untouched.
    """
    def __init__(self, db: Session, parse_block=parse_host_block):
        self.db = db
        self.entities = EntityService(db)
        self.relations = RelationService(db)
        self.parse_block = parse_block

    def reconcile(
        self,
        content: str,
        implicit_group: Optional[str] = None,
        source: Optional[str] = None,
    ) -> ReconcileReport:
        """Runs one reconciliation pass over the text of a config file.

        Args:
            content: Raw file content.
            implicit_group: Group applied to every host of the file, derived
                from its file name. It is never removed by the diff.
            source: Path of the file, only used for reporting.

        Returns:
            A report listing the hosts reconciled and the per-block errors.
        """
        if implicit_group is not None:
            implicit_group = implicit_group.strip() or None
        report = ReconcileReport(source=source, implicit_group=implicit_group)

        for block in BlockExtractor.extract(content):
            try:
                parsed = self.parse_block(block.body)
            except HostParseError as e:
                logger.debug(f"{source or '<text>'} block {block.index}: not a valid host block ({e})")
                report.errors.append(BlockError(
                    kind="parse", source=source, block_index=block.index, message=str(e),
                ))
                continue
            if parsed is None:
                report.skipped_blocks += 1
                continue

            try:
                self.reconcile_block(parsed, block, implicit_group)
            except (SQLAlchemyError, StoreError) as e:
                self.db.rollback()
                logger.warning(
                    f"{source or '<text>'} block {block.index} (host '{parsed.name}'): reconcile failed: {e}"
                )
                report.errors.append(BlockError(
                    kind="store", source=source, block_index=block.index,
                    host=parsed.name, message=str(e),
                ))
                continue
            report.hosts.append(parsed.name)

        logger.info(
            f"Reconciled {len(report.hosts)} host(s) from {source or '<text>'}"
            f" ({report.skipped_blocks} skipped, {len(report.errors)} error(s))"
        )
        return report

    def reconcile_block(
        self,
        parsed: ParsedHost,
        block: ExtractedBlock,
        implicit_group: Optional[str] = None,
    ) -> int:
        """Upserts one host and syncs its tag and group edges.

        Additions are applied before removals so a host never passes through
        an empty membership set while it still belongs to an overlapping one.

        Returns:
            The host id.
        """
        parsed = parsed.model_copy(update={"comment": block.comment})
        host_id = self.entities.upsert_host(parsed)

        tag_ids = self._resolve(EntityKind.TAG, block.tags)
        group_ids = self._resolve(EntityKind.GROUP, block.groups)

        if implicit_group:
            implicit_id = self.entities.create_or_update(EntityKind.GROUP, implicit_group)
            self.relations.add_edge(EntityKind.GROUP, implicit_id, host_id)

        self._add_missing(EntityKind.TAG, host_id, tag_ids)
        self._add_missing(EntityKind.GROUP, host_id, group_ids)

        self._remove_stale(EntityKind.TAG, host_id, tag_ids)
        self._remove_stale(EntityKind.GROUP, host_id, group_ids, protected_name=implicit_group)
        return host_id

    def _resolve(self, kind: EntityKind, names: List[str]) -> List[int]:
        ids = []
        for name in names:
            member_id = self.entities.create_or_update(kind, name)
            if member_id not in ids:
                ids.append(member_id)
        return ids

    def _add_missing(self, kind: EntityKind, host_id: int, member_ids: List[int]):
        current = self.relations.edges_for_host(kind, host_id)
        for member_id in member_ids:
            if member_id not in current:
                self.relations.add_edge(kind, member_id, host_id)

    def _remove_stale(
        self,
        kind: EntityKind,
        host_id: int,
        member_ids: List[int],
        protected_name: Optional[str] = None,
    ):
        protected_key = natural_key(protected_name) if protected_name else None
        wanted = set(member_ids)
        for member_id, name in self.relations.edges_for_host(kind, host_id).items():
            if member_id in wanted:
                continue
            if protected_key and natural_key(name) == protected_key:
                continue
            logger.debug(f"Removing stale {kind.value} '{name}' from host {host_id}")
            self.relations.remove_edge(kind, member_id, host_id)
