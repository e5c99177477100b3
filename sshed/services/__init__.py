from .entities import EntityService
from .relations import RelationService
from .extractor import BlockExtractor
from .parser import parse_host_block
from .reconciler import ReconcileService
from .search import SearchService, FilterMode
from .sync import SyncService
