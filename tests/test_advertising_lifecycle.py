import pytest

from adcast.core.exceptions import (
    AdvertisingRecordNotFoundError,
    InvalidStatusTransitionError,
)
from adcast.services.advertising_lifecycle import AdvertisingRecordLifecycle


async def _make_pending_record(storage):
    return await storage.advertising.create(
        rule_id="very_hot", advertiser_id=1, status="Pending", priority=1
    )


class TestValidateTransition:
    """Verify the allowed status transitions."""

    @pytest.mark.parametrize(
        "current, new",
        [("Pending", "Failed"), ("Failed", "Pending"), ("Pending", "Pending")],
    )
    def test_allowed(self, current, new):
        AdvertisingRecordLifecycle.validate_transition(current, new)

    @pytest.mark.parametrize(
        "current, new", [("Done", "Pending"), ("Done", "Failed"), ("Failed", "Done")]
    )
    def test_disallowed(self, current, new):
        with pytest.raises(InvalidStatusTransitionError):
            AdvertisingRecordLifecycle.validate_transition(current, new, "/audio/x.mp3")

    def test_done_requires_audio_path(self):
        with pytest.raises(InvalidStatusTransitionError):
            AdvertisingRecordLifecycle.validate_transition("Pending", "Done")

    def test_unknown_status_rejected(self):
        with pytest.raises(InvalidStatusTransitionError):
            AdvertisingRecordLifecycle.validate_transition("Pending", "Archived")


class TestUpdateStatus:
    """Verify status updates against storage."""

    def setup_method(self):
        self.lifecycle = AdvertisingRecordLifecycle()

    @pytest.mark.asyncio
    async def test_done_sets_audio_path_and_counts_attempt(self, fake_storage):
        record = await _make_pending_record(fake_storage)

        await self.lifecycle.update_status(
            record.id, "Done", fake_storage, audio_path="/audio/a.mp3"
        )

        assert record.status == "Done"
        assert record.audio_file == "/audio/a.mp3"
        assert record.attempts == 1

    @pytest.mark.asyncio
    async def test_missing_record_raises(self, fake_storage):
        with pytest.raises(AdvertisingRecordNotFoundError):
            await self.lifecycle.update_status(42, "Failed", fake_storage)

    @pytest.mark.asyncio
    async def test_failed_then_reset_keeps_audio_file_untouched(self, fake_storage):
        record = await _make_pending_record(fake_storage)

        await self.lifecycle.update_status(record.id, "Failed", fake_storage)
        await self.lifecycle.reset_to_pending(record.id, fake_storage)

        assert record.status == "Pending"
        assert record.audio_file is None
        assert record.attempts == 1

    @pytest.mark.asyncio
    async def test_repeating_failed_does_not_count_twice(self, fake_storage):
        record = await _make_pending_record(fake_storage)

        await self.lifecycle.update_status(record.id, "Failed", fake_storage)
        await self.lifecycle.update_status(record.id, "Failed", fake_storage)

        assert record.attempts == 1

    @pytest.mark.asyncio
    async def test_done_record_cannot_be_reset(self, fake_storage):
        record = await _make_pending_record(fake_storage)
        await self.lifecycle.update_status(
            record.id, "Done", fake_storage, audio_path="/audio/a.mp3"
        )

        with pytest.raises(InvalidStatusTransitionError):
            await self.lifecycle.reset_to_pending(record.id, fake_storage)
