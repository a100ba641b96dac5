"""Unit tests for ami_cleanup/dispatcher.py"""

import queue
import sys
import threading
import time
from pathlib import Path

_python_dir = Path(__file__).parent.parent / "python"
if str(_python_dir.absolute()) not in sys.path:
    sys.path.insert(0, str(_python_dir.absolute()))

from ami_cleanup.dispatcher import MAX_CONCURRENT_REVOCATIONS, RevocationDispatcher
from ami_cleanup.status import AllUpdatesComplete, UpdateFailed, UpdateStarted, UpdateSucceeded


class FakeRevoker:
    """Records calls and tracks how many run at once"""

    def __init__(self, fail_ids=(), delay=0.0):
        self.fail_ids = set(fail_ids)
        self.delay = delay
        self.calls = []
        self.active = 0
        self.max_active = 0
        self._lock = threading.Lock()

    def revoke_public_launch(self, region, ami_id):
        with self._lock:
            self.calls.append((region, ami_id))
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        try:
            if self.delay:
                time.sleep(self.delay)
            if ami_id in self.fail_ids:
                raise RuntimeError(f"cannot modify {ami_id}")
        finally:
            with self._lock:
                self.active -= 1


def _run(revoker, keys):
    """Dispatch, wait for the coordinator and return every queued event"""
    events = queue.Queue()
    thread = RevocationDispatcher(revoker, events).dispatch(keys)
    thread.join(timeout=10)
    assert not thread.is_alive()

    drained = []
    while not events.empty():
        drained.append(events.get_nowait())
    return drained


class TestRevocationDispatcher:
    """Tests for the bounded revocation pool"""

    def test_concurrency_never_exceeds_limit(self):
        revoker = FakeRevoker(delay=0.05)
        keys = [f"us-east-1:ami-{i:02d}" for i in range(12)]

        _run(revoker, keys)

        assert MAX_CONCURRENT_REVOCATIONS == 5
        assert revoker.max_active <= MAX_CONCURRENT_REVOCATIONS
        assert len(revoker.calls) == 12

    def test_started_precedes_terminal_event_for_each_key(self):
        keys = ["us-east-1:ami-a", "eu-west-1:ami-b", "us-west-2:ami-c"]
        events = _run(FakeRevoker(fail_ids={"ami-b"}), keys)

        for key in keys:
            per_key = [event for event in events if getattr(event, "key", None) == key]
            assert isinstance(per_key[0], UpdateStarted)
            assert len(per_key) == 2
            assert isinstance(per_key[1], (UpdateSucceeded, UpdateFailed))

    def test_exactly_one_completion_event_and_it_is_last(self):
        events = _run(FakeRevoker(), ["us-east-1:ami-a", "us-east-1:ami-b"])

        completions = [event for event in events if isinstance(event, AllUpdatesComplete)]
        assert len(completions) == 1
        assert isinstance(events[-1], AllUpdatesComplete)

    def test_failure_does_not_affect_other_jobs(self):
        revoker = FakeRevoker(fail_ids={"ami-bad"})
        events = _run(revoker, ["us-east-1:ami-bad", "us-east-1:ami-good"])

        failed = [event for event in events if isinstance(event, UpdateFailed)]
        succeeded = [event for event in events if isinstance(event, UpdateSucceeded)]
        assert failed == [UpdateFailed(key="us-east-1:ami-bad", message="cannot modify ami-bad")]
        assert succeeded == [UpdateSucceeded(key="us-east-1:ami-good")]

    def test_malformed_key_fails_without_start(self):
        revoker = FakeRevoker()
        events = _run(revoker, ["no-separator"])

        assert events == [
            UpdateFailed(key="no-separator", message="invalid AMI key format"),
            AllUpdatesComplete(),
        ]
        assert revoker.calls == []

    def test_calls_revoker_with_region_and_id(self):
        revoker = FakeRevoker()
        _run(revoker, ["eu-central-1:ami-0abc"])

        assert revoker.calls == [("eu-central-1", "ami-0abc")]

    def test_empty_batch_still_completes(self):
        assert _run(FakeRevoker(), []) == [AllUpdatesComplete()]
