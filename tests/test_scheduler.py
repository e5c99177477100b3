import pytest

from sshed.services.scheduler import SchedulerService, periodic_sync, scheduler


class FakeSync:
    def __init__(self):
        self.calls = []

    def run(self, trigger="manual"):
        self.calls.append(trigger)


def test_periodic_sync_disabled_by_zero_interval():
    assert SchedulerService.start(FakeSync(), interval_minutes=0) is False
    assert not scheduler.running


@pytest.mark.asyncio
async def test_periodic_sync_job_is_registered():
    sync = FakeSync()
    try:
        assert SchedulerService.start(sync, interval_minutes=5) is True
        job = scheduler.get_job("periodic_sync")
        assert job is not None
        assert job.args == (sync,)
    finally:
        SchedulerService.shutdown()


@pytest.mark.asyncio
async def test_periodic_sync_runs_a_pass():
    sync = FakeSync()
    await periodic_sync(sync)
    assert sync.calls == ["schedule"]
