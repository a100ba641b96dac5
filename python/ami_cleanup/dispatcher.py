#!/usr/bin/env python3
"""
Bounded-concurrency revocation of public launch permissions.

Workers never touch screen state. Each one only puts immutable status
events on a shared queue, which the interactive screen drains one event at
a time.
"""

import concurrent.futures
import queue
import threading
from typing import Iterable, List, Protocol

from ami_cleanup.logging_utils import get_logger
from ami_cleanup.models import parse_ami_key
from ami_cleanup.status import AllUpdatesComplete, StatusEvent, UpdateFailed, UpdateStarted, UpdateSucceeded

logger = get_logger(__name__)

MAX_CONCURRENT_REVOCATIONS = 5


class Revoker(Protocol):
    def revoke_public_launch(self, region: str, ami_id: str) -> None:
        ...


class RevocationDispatcher:
    """Runs revocations on a fixed-width pool and reports progress as events"""

    def __init__(self, revoker: Revoker, events: "queue.Queue[StatusEvent]",
                 max_workers: int = MAX_CONCURRENT_REVOCATIONS):
        self.revoker = revoker
        self.events = events
        self.max_workers = max_workers

    def dispatch(self, keys: Iterable[str]) -> threading.Thread:
        """Start revoking in the background and return the coordinating thread.

        Exactly one AllUpdatesComplete is queued after every job finished.
        """
        batch = sorted(keys)
        logger.info(f"Making {len(batch)} AMI(s) private using {self.max_workers} parallel workers...")
        thread = threading.Thread(target=self.run, args=(batch,), name="ami-revocations", daemon=True)
        thread.start()
        return thread

    def run(self, keys: List[str]) -> None:
        """Revoke every key, blocking until all jobs are done"""
        try:
            with concurrent.futures.ThreadPoolExecutor(
                max_workers=self.max_workers, thread_name_prefix="revoke"
            ) as executor:
                futures = [executor.submit(self._revoke_one, key) for key in keys]
                concurrent.futures.wait(futures)
        finally:
            self.events.put(AllUpdatesComplete())

    def _revoke_one(self, key: str) -> None:
        try:
            region, ami_id = parse_ami_key(key)
        except ValueError as e:
            logger.error(f"    ✗ Skipping {key!r}: {e}")
            self.events.put(UpdateFailed(key=key, message=str(e)))
            return

        self.events.put(UpdateStarted(key=key))
        try:
            self.revoker.revoke_public_launch(region, ami_id)
        except Exception as e:
            logger.error(f"    ✗ Error making {ami_id} private in {region}: {e}")
            self.events.put(UpdateFailed(key=key, message=str(e)))
            return

        logger.info(f"    ✓ {ami_id} in {region} is now private")
        self.events.put(UpdateSucceeded(key=key))
