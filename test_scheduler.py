import pytest

from civicease.core.scheduler import ComplaintWatcher, complaint_watch_job, watcher


class StubComplaints:
    def __init__(self):
        self.pending = []

    async def list_pending_complaints(self):
        return list(self.pending)


@pytest.mark.asyncio
async def test_watcher_reports_only_new_pending_complaints():
    complaints = StubComplaints()
    complaints.pending = [{"id": "a"}]
    w = ComplaintWatcher(service=complaints)

    # first poll only primes
    assert await w.poll() == []

    complaints.pending = [{"id": "a"}, {"id": "b"}]
    assert [c["id"] for c in await w.poll()] == ["b"]
    assert await w.poll() == []

    # assigned complaints drop out; a later complaint is still new
    complaints.pending = [{"id": "c"}]
    assert [c["id"] for c in await w.poll()] == ["c"]


def test_watch_job_logs_failures(monkeypatch, caplog):
    class Broken:
        async def list_pending_complaints(self):
            raise RuntimeError("firestore down")

    monkeypatch.setattr(watcher, "_service", Broken())
    complaint_watch_job()
    assert "Complaint watch job failed" in caplog.text
