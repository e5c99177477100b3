from typing import Callable, List, Optional, Tuple
from datetime import datetime, timezone
from pathlib import Path
from sqlmodel import Session
import threading
import logging

from sshed.core.errors import SourceReadError
from sshed.core.runtime import RuntimeConfig, get_runtime
from sshed.schemas.sync import SourceError, SyncReport
from sshed.services.reconciler import ReconcileService

logger = logging.getLogger(__name__)


def is_glob(path: Path) -> bool:
    return str(path).endswith("*")


def implicit_group_for(path: Path) -> str:
    return path.name


def discover_sources(path: Path) -> List[Tuple[Path, Optional[str]]]:
    """Lists the config files to reconcile for a configured path.

    A path ending in ``*`` stands for every file below its parent directory,
    recursively. Each such file gets an implicit group named after the file.
    A plain path is a single source without implicit group.
    """
    path = Path(path).expanduser()
    if not is_glob(path):
        return [(path, None)]

    root = path.parent
    if not root.is_dir():
        logger.warning(f"Config directory {root} does not exist")
        return []
    return [
        (p, implicit_group_for(p))
        for p in sorted(root.rglob("*"))
        if p.is_file()
    ]


def read_source(path: Path) -> str:
    try:
        return Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise SourceReadError(path, e) from e


class SyncService:
    """Drives reconciliation passes over the configured ssh config.

    Passes are serialized by a lock so the watcher, the scheduler and the
    HTTP trigger can all call ``run`` back-to-back safely. The config path is
    read from the runtime snapshot at the start of every pass, so a reload
    takes effect on the next pass.
    """
    def __init__(
        self,
        session_factory: Callable[[], Session],
        runtime: Optional[RuntimeConfig] = None,
    ):
        self.session_factory = session_factory
        self._runtime = runtime
        self._pass_lock = threading.Lock()
        self._last_report: Optional[SyncReport] = None
        self._report_lock = threading.Lock()

    @property
    def runtime(self) -> RuntimeConfig:
        return self._runtime or get_runtime()

    @property
    def last_report(self) -> Optional[SyncReport]:
        with self._report_lock:
            return self._last_report

    def run(self, trigger: str = "manual") -> SyncReport:
        """Reconciles every source file of the current config path.

        An unreadable file aborts that file's pass only; it is listed in
        ``source_errors`` and the remaining files are still processed.

        Args:
            trigger: Free-form label of what started the pass.

        Returns:
            The SyncReport of this pass.
        """
        config_path = self.runtime.ssh_config_path()
        with self._pass_lock:
            report = SyncReport(trigger=trigger, config_path=str(config_path))
            logger.info(f"Sync pass started ({trigger}) for {config_path}")

            with self.session_factory() as session:
                reconciler = ReconcileService(session)
                for path, implicit_group in discover_sources(config_path):
                    try:
                        content = read_source(path)
                    except SourceReadError as e:
                        logger.error(str(e))
                        report.source_errors.append(SourceError(source=str(path), message=str(e)))
                        continue
                    report.files.append(
                        reconciler.reconcile(content, implicit_group=implicit_group, source=str(path))
                    )

            report.finished_at = datetime.now(timezone.utc)
            logger.info(
                f"Sync pass finished: {report.host_count} host(s), {report.error_count} error(s)"
            )
            with self._report_lock:
                self._last_report = report
            return report
