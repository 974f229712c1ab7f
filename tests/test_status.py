"""StatusChannel tests: subscription, current messages and auto reset."""

import asyncio

import pytest

from enrollment_workflow.status import StatusChannel


class TestStatusChannel:

    def test_subscribers_receive_events(self):
        channel = StatusChannel()
        events = []
        channel.subscribe(events.append)
        channel.publish_loading("Loading Enrollment")
        channel.publish_success("Enrollment successfully loaded")
        assert [(e.kind, e.message) for e in events] == [
            ("loading", "Loading Enrollment"),
            ("success", "Enrollment successfully loaded"),
        ]

    def test_unsubscribe(self):
        channel = StatusChannel()
        events = []
        unsubscribe = channel.subscribe(events.append)
        unsubscribe()
        channel.publish_error("boom")
        assert events == []
        assert channel.error_message == "boom"

    def test_clear_loading_only_when_set(self):
        channel = StatusChannel()
        channel.clear_loading()
        assert channel.history == []
        channel.publish_loading("Loading Enrollment")
        channel.clear_loading()
        assert channel.loading_message is None
        assert [e.message for e in channel.history] == ["Loading Enrollment", None]

    def test_no_reset_without_running_loop(self):
        channel = StatusChannel(reset_seconds=0.01)
        channel.publish_success("saved")
        assert channel.success_message == "saved"

    @pytest.mark.asyncio
    async def test_success_and_error_reset_after_delay(self):
        channel = StatusChannel(reset_seconds=0.01)
        channel.publish_success("saved")
        channel.publish_error("failed")
        await asyncio.sleep(0.05)
        assert channel.success_message is None
        assert channel.error_message is None
        channel.close()

    @pytest.mark.asyncio
    async def test_loading_never_resets(self):
        channel = StatusChannel(reset_seconds=0.01)
        channel.publish_loading("Loading Enrollment")
        await asyncio.sleep(0.05)
        assert channel.loading_message == "Loading Enrollment"

    @pytest.mark.asyncio
    async def test_close_cancels_pending_resets(self):
        channel = StatusChannel(reset_seconds=0.01)
        channel.publish_success("saved")
        channel.close()
        await asyncio.sleep(0.05)
        assert channel.success_message == "saved"
