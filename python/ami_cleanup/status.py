"""
Status events emitted by the revocation dispatcher and the single consumer
that folds them into the AMI records and the selector state.
"""

from dataclasses import dataclass
from typing import Union

from ami_cleanup.logging_utils import get_logger
from ami_cleanup.models import AMIStatus
from ami_cleanup.selector import SelectorState, find_amis, with_view

logger = get_logger(__name__)


@dataclass(frozen=True)
class UpdateStarted:
    key: str


@dataclass(frozen=True)
class UpdateSucceeded:
    key: str


@dataclass(frozen=True)
class UpdateFailed:
    key: str
    message: str


@dataclass(frozen=True)
class AllUpdatesComplete:
    pass


StatusEvent = Union[UpdateStarted, UpdateSucceeded, UpdateFailed, AllUpdatesComplete]


def apply_status_event(state: SelectorState, event: StatusEvent) -> SelectorState:
    """Apply one dispatcher event.

    AMI records are updated in place; the returned state carries the
    selection/banner changes and a re-derived view. Must only be called
    from the thread that owns the screen, one event at a time.
    """
    if isinstance(event, AllUpdatesComplete):
        logger.info("All revocations finished")
        return with_view(state, updating=False, update_status="✓ All updates complete!")

    amis = find_amis(state.trees, event.key)
    if not amis:
        logger.warning(f"Received {type(event).__name__} for unknown AMI {event.key}")

    if isinstance(event, UpdateStarted):
        for ami in amis:
            ami.status = AMIStatus.UPDATING
        return with_view(state)

    if isinstance(event, UpdateSucceeded):
        for ami in amis:
            ami.status = AMIStatus.PRIVATE
            ami.error_msg = None
        logger.info(f"✓ Made {event.key} private")
        return with_view(
            state,
            selected=state.selected - {event.key},
            status_msg=f"✓ Made {event.key} private",
        )

    if isinstance(event, UpdateFailed):
        for ami in amis:
            ami.status = AMIStatus.ERROR
            ami.error_msg = event.message
        logger.error(f"✗ Failed to update {event.key}: {event.message}")
        return with_view(state, error_msg=f"✗ Failed to update {event.key}: {event.message}")

    raise ValueError(f"Unknown status event: {event!r}")
