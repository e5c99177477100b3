import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session

from sshed.core.database import build_engine, create_db_and_tables
from sshed.core.runtime import AppConfig, GeneralConfig, RuntimeConfig
from sshed.dependencies import get_db, get_sync_service
from sshed.main import app
from sshed.services import ReconcileService, SyncService

SAMPLE_CONFIG = """\
#--(dev,ops)
#--[web]
# my comment
Host foo
  HostName 1.2.3.4
  User deploy

#--[db, backup]
Host Bar
  HostName bar.example.com
  Port 2222

Host baz
  HostName 10.0.0.3
"""


@pytest.fixture
def sample_config():
    return SAMPLE_CONFIG


@pytest.fixture
def engine():
    # One shared in-memory connection so every session sees the same data
    engine = build_engine(
        "sqlite://",
        poolclass=StaticPool,
    )
    create_db_and_tables(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def reconciler(session):
    return ReconcileService(session)


@pytest.fixture
def ssh_config(tmp_path):
    path = tmp_path / "ssh_config"
    path.write_text(SAMPLE_CONFIG, encoding="utf-8")
    return path


@pytest.fixture
def runtime(ssh_config):
    return RuntimeConfig(initial=AppConfig(general=GeneralConfig(ssh_config_path=str(ssh_config))))


@pytest.fixture
def sync_service(engine, runtime):
    return SyncService(lambda: Session(engine), runtime=runtime)


@pytest.fixture
def client(engine, sync_service):
    def override_get_db():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_sync_service] = lambda: sync_service
    yield TestClient(app)
    app.dependency_overrides.clear()
