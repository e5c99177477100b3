import pytest
from pathlib import Path
from sqlmodel import Session

from sshed.core.errors import ConfigError, SourceReadError
from sshed.core.runtime import AppConfig, GeneralConfig, RuntimeConfig, read_config
from sshed.models import EntityKind
from sshed.services import EntityService, RelationService, SyncService
from sshed.services.sync import discover_sources, read_source


def _groups(engine, host_name):
    with Session(engine) as session:
        host = EntityService(session).get_host(host_name)
        return set(RelationService(session).edges_for_host(EntityKind.GROUP, host.id).values())


def test_plain_path_is_a_single_source(tmp_path):
    path = tmp_path / "config"
    assert discover_sources(path) == [(path, None)]


def test_glob_path_walks_directory_recursively(tmp_path):
    (tmp_path / "conf.d" / "nested").mkdir(parents=True)
    (tmp_path / "conf.d" / "prod").write_text("Host p")
    (tmp_path / "conf.d" / "nested" / "staging").write_text("Host s")

    sources = discover_sources(tmp_path / "conf.d" / "*")
    assert sorted((p.name, group) for p, group in sources) == [
        ("prod", "prod"),
        ("staging", "staging"),
    ]


def test_glob_on_missing_directory_is_empty(tmp_path):
    assert discover_sources(tmp_path / "missing" / "*") == []


def test_read_source_wraps_io_errors(tmp_path):
    with pytest.raises(SourceReadError) as exc:
        read_source(tmp_path / "nope")
    assert exc.value.path == tmp_path / "nope"


def test_sync_run_reconciles_configured_file(sync_service, engine, ssh_config):
    report = sync_service.run("test")

    assert report.ok
    assert report.config_path == str(ssh_config)
    assert report.host_count == 3
    assert report.files[0].implicit_group is None
    assert sync_service.last_report is report
    assert _groups(engine, "foo") == {"dev", "ops"}
    assert report.started_at.tzinfo is not None
    assert report.finished_at >= report.started_at


def test_sync_run_applies_implicit_groups_from_file_names(engine, tmp_path):
    conf_d = tmp_path / "conf.d"
    conf_d.mkdir()
    (conf_d / "prod").write_text("#--(web)\nHost p1\n\nHost p2")
    (conf_d / "lab").write_text("Host l1")
    runtime = RuntimeConfig(initial=AppConfig(general=GeneralConfig(ssh_config_path=str(conf_d / "*"))))
    sync = SyncService(lambda: Session(engine), runtime=runtime)

    sync.run()
    sync.run()

    assert _groups(engine, "p1") == {"prod", "web"}
    assert _groups(engine, "p2") == {"prod"}
    assert _groups(engine, "l1") == {"lab"}


def test_missing_source_is_reported_not_raised(engine, tmp_path):
    runtime = RuntimeConfig(initial=AppConfig(general=GeneralConfig(ssh_config_path=str(tmp_path / "gone"))))
    report = SyncService(lambda: Session(engine), runtime=runtime).run()

    assert not report.ok
    assert report.files == []
    assert len(report.source_errors) == 1
    assert "gone" in report.source_errors[0].source


def test_sync_follows_runtime_config_changes(sync_service, runtime, engine, tmp_path):
    other = tmp_path / "other"
    other.write_text("Host elsewhere")
    runtime.replace(AppConfig(general=GeneralConfig(ssh_config_path=str(other))))

    report = sync_service.run()
    assert report.files[0].hosts == ["elsewhere"]


def test_read_config_defaults_and_file(tmp_path, monkeypatch):
    assert read_config(None).general.ssh_config_path is None
    assert read_config(tmp_path / "missing.toml").general.ssh_config_path is None

    cfg = tmp_path / "sshed.toml"
    cfg.write_text('[general]\nssh_config_path = "~/custom/config"\n')
    config = read_config(cfg)
    assert config.ssh_config_path == Path("~/custom/config").expanduser()
    assert config.source == cfg


def test_read_config_rejects_broken_toml(tmp_path):
    cfg = tmp_path / "sshed.toml"
    cfg.write_text("[general\n")
    with pytest.raises(ConfigError):
        read_config(cfg)


def test_reload_keeps_previous_snapshot_on_error(tmp_path):
    cfg = tmp_path / "sshed.toml"
    cfg.write_text('[general]\nssh_config_path = "/etc/ssh/a"\n')
    runtime = RuntimeConfig(cfg)
    assert runtime.ssh_config_path() == Path("/etc/ssh/a")

    cfg.write_text('[general]\nssh_config_path = "/etc/ssh/b"\n')
    assert runtime.reload() is True
    assert runtime.ssh_config_path() == Path("/etc/ssh/b")

    cfg.write_text("not = [valid")
    assert runtime.reload() is False
    assert runtime.ssh_config_path() == Path("/etc/ssh/b")
