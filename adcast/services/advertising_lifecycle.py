import logging
from typing import Optional

from adcast.core.constants import (
    ADVERTISING_STATUSES,
    ALLOWED_TRANSITIONS,
    TERMINAL_STATUSES,
)
from adcast.core.exceptions import (
    AdvertisingRecordNotFoundError,
    InvalidStatusTransitionError,
)
from adcast.repositories.storage import PipelineStorage
from adcast.schemas.common import AdvertisingStatus

logger = logging.getLogger(__name__)


class AdvertisingRecordLifecycle:
    """Own the Pending → Done | Failed (and Failed → Pending) state machine.

    Changes are flushed but not committed; the caller decides where the
    unit-of-work ends.
    """

    @staticmethod
    def validate_transition(
        current_status: str, new_status: str, audio_path: Optional[str] = None
    ) -> None:
        """Raise ``InvalidStatusTransitionError`` for a disallowed move.

        Re-applying the current status is always allowed.
        """
        if new_status not in ADVERTISING_STATUSES:
            raise InvalidStatusTransitionError(
                f"Unknown advertising status: {new_status}"
            )
        if new_status == AdvertisingStatus.DONE.value and not audio_path:
            raise InvalidStatusTransitionError(
                "Transition to Done requires an audio path"
            )
        if new_status == current_status:
            return
        if new_status not in ALLOWED_TRANSITIONS.get(current_status, []):
            raise InvalidStatusTransitionError(
                f"Cannot transition from {current_status} to {new_status}"
            )

    async def update_status(
        self,
        record_id: int,
        status: str,
        storage: PipelineStorage,
        audio_path: Optional[str] = None,
    ) -> None:
        """Move advertising record *record_id* to *status*.

        Moving into a terminal status counts one processing attempt.
        """
        status = getattr(status, "value", status)
        record = await storage.advertising.get_by_id(record_id)
        if record is None:
            raise AdvertisingRecordNotFoundError(
                f"Advertising record {record_id} not found"
            )

        self.validate_transition(record.status, status, audio_path)
        if record.status == status and status != AdvertisingStatus.DONE.value:
            logger.debug("Advertising record %s already %s", record_id, status)
            return

        await storage.advertising.update_status(
            record,
            status,
            audio_file=audio_path,
            increment_attempts=(
                status in TERMINAL_STATUSES and record.status != status
            ),
        )
        await storage.advertising.flush()
        logger.info("Updated advertising record %s to status: %s", record_id, status)

    async def reset_to_pending(self, record_id: int, storage: PipelineStorage) -> None:
        """Put a Failed record back in the queue; no other field changes."""
        await self.update_status(record_id, AdvertisingStatus.PENDING.value, storage)
