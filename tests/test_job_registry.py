import itertools
import threading

from clipconvert.services.job_registry import JobRegistry, default_job_id_factory


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


def test_unknown_job_is_not_found():
    registry = JobRegistry()

    status = registry.get_status("video_never_submitted.mp4")

    assert status.status == "not_found"
    assert not status.found


def test_fresh_job_is_pending():
    registry = JobRegistry()

    job_id = registry.submit()

    assert registry.get_status(job_id).status == "pending"
    # Pending reads do not consume the entry
    assert registry.get_status(job_id).status == "pending"


def test_complete_is_delivered_exactly_once():
    registry = JobRegistry()
    job_id = registry.submit()

    registry.mark_complete(job_id, f"/videos/{job_id}")

    first = registry.get_status(job_id)
    assert first.status == "complete"
    assert first.output_location == f"/videos/{job_id}"
    assert registry.get_status(job_id).status == "not_found"
    assert len(registry) == 0


def test_failed_is_readable_repeatedly():
    registry = JobRegistry()
    job_id = registry.submit()

    registry.mark_failed(job_id, "FFmpeg failed with code 1")

    for _ in range(3):
        status = registry.get_status(job_id)
        assert status.status == "failed"
        assert status.error_message == "FFmpeg failed with code 1"


def test_failed_entries_expire_after_ttl():
    clock = FakeClock()
    registry = JobRegistry(failed_ttl=60, clock=clock)
    job_id = registry.submit()
    registry.mark_failed(job_id)

    clock.now += 60
    assert registry.get_status(job_id).status == "failed"

    clock.now += 1
    assert registry.get_status(job_id).status == "not_found"


def test_purge_keeps_pending_jobs_regardless_of_age():
    clock = FakeClock()
    registry = JobRegistry(failed_ttl=10, clock=clock)
    pending_id = registry.submit()
    failed_id = registry.submit()
    registry.mark_failed(failed_id)

    clock.now += 1000

    assert registry.purge_expired() == 1
    assert registry.get_status(pending_id).status == "pending"


def test_marks_on_unknown_ids_are_silent_noops():
    registry = JobRegistry()

    registry.mark_complete("video_ghost.mp4", "/videos/video_ghost.mp4")
    registry.mark_failed("video_ghost.mp4", "boom")

    assert len(registry) == 0
    assert registry.get_status("video_ghost.mp4").status == "not_found"


def test_terminal_states_are_final():
    registry = JobRegistry()
    failed_id = registry.submit()
    registry.mark_failed(failed_id)
    registry.mark_complete(failed_id, "/videos/late.mp4")
    assert registry.get_status(failed_id).status == "failed"

    done_id = registry.submit()
    registry.mark_complete(done_id, f"/videos/{done_id}")
    registry.mark_failed(done_id, "late failure")
    status = registry.get_status(done_id)
    assert status.status == "complete"
    assert status.output_location == f"/videos/{done_id}"


def test_mark_after_delivery_does_not_resurrect_job():
    registry = JobRegistry()
    job_id = registry.submit()
    registry.mark_complete(job_id, f"/videos/{job_id}")
    registry.get_status(job_id)

    registry.mark_failed(job_id)

    assert registry.get_status(job_id).status == "not_found"


def test_injected_id_factory_is_used():
    ids = iter(["video_100.mp4", "video_101.mp4"])
    registry = JobRegistry(id_factory=lambda: next(ids))

    assert registry.submit() == "video_100.mp4"
    assert registry.submit() == "video_101.mp4"


def test_default_ids_do_not_collide_within_one_millisecond(monkeypatch):
    monkeypatch.setattr("clipconvert.services.job_registry.time.time", lambda: 1718000000.123)
    next_id = default_job_id_factory()

    ids = [next_id() for _ in range(100)]

    assert len(set(ids)) == 100
    assert all(i.startswith("video_1718000000123_") and i.endswith(".mp4") for i in ids)


def test_counts_by_state():
    registry = JobRegistry()
    registry.submit()
    failed_id = registry.submit()
    done_id = registry.submit()
    registry.mark_failed(failed_id)
    registry.mark_complete(done_id, "/videos/x.mp4")

    assert registry.counts() == {"pending": 1, "complete": 1, "failed": 1}


def test_concurrent_submits_and_marks_are_consistent():
    counter = itertools.count()
    registry = JobRegistry(id_factory=lambda: f"video_{next(counter)}.mp4")
    results = []
    lock = threading.Lock()

    def run():
        for _ in range(200):
            job_id = registry.submit()
            registry.mark_complete(job_id, f"/videos/{job_id}")
            status = registry.get_status(job_id)
            with lock:
                results.append(status)

    threads = [threading.Thread(target=run) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(results) == 1600
    assert all(s.status == "complete" and s.output_location == f"/videos/{s.job_id}" for s in results)
    assert len(registry) == 0
