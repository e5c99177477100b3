from typing import Optional
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select
import logging

from sshed.core.errors import StoreError
from sshed.models import EntityKind, Host
from sshed.models.host import utc_now
from sshed.schemas.host import ParsedHost

logger = logging.getLogger(__name__)


def natural_key(name: str) -> str:
    return name.strip().lower()


class EntityService:
    """Create-or-update of hosts, tags and groups by natural key.

    The natural key is the lowercased name. Lookups are case-insensitive and
    the stored display name keeps the casing it had when first created. The
    UNIQUE constraint on ``name_key`` is what keeps concurrent writers from
    creating duplicates: a writer that loses the insert race rolls back and
    returns the winner's identity.
    """
    def __init__(self, db: Session):
        self.db = db

    def get_by_name(self, kind: EntityKind, name: str):
        model = kind.model
        return self.db.exec(select(model).where(model.name_key == natural_key(name))).first()

    def list_all(self, kind: EntityKind) -> list:
        model = kind.model
        return list(self.db.exec(select(model).order_by(model.name_key)).all())

    def create_or_update(self, kind: EntityKind, name: str) -> int:
        """Returns the identity of the tag or group called ``name``.

        Args:
            kind: Which entity table to use.
            name: Display name. Surrounding whitespace is ignored.

        Returns:
            The existing id if an entity with the same natural key exists,
            else the id of the newly created entity.

        Raises:
            StoreError: If the name is empty.
            SQLAlchemyError: On any database failure.
        """
        name = name.strip()
        if not name:
            raise StoreError(f"Empty {kind.value} name")

        existing = self.get_by_name(kind, name)
        if existing:
            # Name-only entities have nothing else to overwrite
            return existing.id

        entity = kind.model(name=name, name_key=natural_key(name))
        self.db.add(entity)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            winner = self.get_by_name(kind, name)
            if winner is None:
                raise
            logger.debug(f"Concurrent insert of {kind.value} '{name}', using id {winner.id}")
            return winner.id
        self.db.refresh(entity)
        return entity.id

    def get_host(self, name: str) -> Optional[Host]:
        return self.db.exec(select(Host).where(Host.name_key == natural_key(name))).first()

    def upsert_host(self, parsed: ParsedHost) -> int:
        """Creates a host or overwrites its connection settings.

        Why: Every pass rewrites a host from its current block, so fields
        dropped from the file must be cleared here too. Identity and the
        original display name are preserved. An unchanged block writes
        nothing, so ``updated_at`` only moves when the settings do.

        Args:
            parsed: Host settings read from the config file.

        Returns:
            The host id.
        """
        content = parsed.model_dump(exclude={"name"})
        host = self.get_host(parsed.name)
        if host is None:
            host = Host(name=parsed.name, name_key=natural_key(parsed.name), **content)
            self.db.add(host)
            try:
                self.db.commit()
            except IntegrityError:
                self.db.rollback()
                host = self.get_host(parsed.name)
                if host is None:
                    raise
                logger.debug(f"Concurrent insert of host '{parsed.name}', updating id {host.id}")
                return self._overwrite(host, content)
            self.db.refresh(host)
            return host.id
        return self._overwrite(host, content)

    def _overwrite(self, host: Host, content: dict) -> int:
        changed = [key for key, value in content.items() if getattr(host, key) != value]
        if not changed:
            return host.id
        for key in changed:
            setattr(host, key, content[key])
        host.updated_at = utc_now()
        self.db.add(host)
        self.db.commit()
        logger.debug(f"Host '{host.name}' updated: {', '.join(changed)}")
        return host.id
