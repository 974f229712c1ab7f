"""ValueCollector tests: the scatter/gather barrier and its timeout."""

import pytest

from enrollment_workflow.collector import FormSyncCollector
from enrollment_workflow.messages import ValuesCollected

from helpers.actors import ProbeActor, SilentQuestion, StaticAnswer


class TestFormSyncCollector:
    """FormSyncCollector asks every question and reports the map to its parent."""

    @pytest.mark.asyncio
    async def test_collects_every_answer(self, system):
        probe = ProbeActor("step")
        system.spawn(probe)
        system.spawn(StaticAnswer("step/question:n1", "q1", "yes"))
        system.spawn(StaticAnswer("step/question:n2", "q2", "TX"))

        system.spawn(
            FormSyncCollector(
                "step/sync:1",
                "step",
                targets={"q1": "step/question:n1", "q2": "step/question:n2"},
                timeout=1.0,
            )
        )
        await system.settle(timeout=2)

        [collected] = probe.of_type(ValuesCollected)
        assert collected.values == {"q1": "yes", "q2": "TX"}
        assert collected.missing == ()
        assert not collected.timed_out
        assert "step/sync:1" not in system, "Collector stops itself after reporting"

    @pytest.mark.asyncio
    async def test_timeout_reports_partial_map(self, system):
        """A question that never answers leaves its slot empty and is listed as missing."""
        probe = ProbeActor("step")
        system.spawn(probe)
        system.spawn(StaticAnswer("step/question:n1", "q1", "yes"))
        system.spawn(SilentQuestion("step/question:n2"))

        system.spawn(
            FormSyncCollector(
                "step/sync:1",
                "step",
                targets={"q1": "step/question:n1", "q2": "step/question:n2"},
                timeout=0.05,
            )
        )
        await system.settle(timeout=2)

        [collected] = probe.of_type(ValuesCollected)
        assert collected.values == {"q1": "yes", "q2": ""}
        assert collected.missing == ("q2",)
        assert collected.timed_out

    @pytest.mark.asyncio
    async def test_no_targets_reports_immediately(self, system):
        probe = ProbeActor("step")
        system.spawn(probe)
        system.spawn(FormSyncCollector("step/sync:1", "step", targets={}, timeout=1.0))
        await system.settle(timeout=1)
        assert probe.of_type(ValuesCollected) == [
            ValuesCollected(collector="step/sync:1", values={}, missing=())
        ]

    @pytest.mark.asyncio
    async def test_seeded_slots_are_kept(self, system):
        probe = ProbeActor("step")
        system.spawn(probe)
        system.spawn(StaticAnswer("step/question:n2", "q2", "TX"))
        collector = FormSyncCollector(
            "step/sync:1",
            "step",
            targets={"q2": "step/question:n2"},
            timeout=1.0,
            seed={"q1": "no"},
        )
        assert collector.responses_needed == 1
        system.spawn(collector)
        await system.settle(timeout=2)
        [collected] = probe.of_type(ValuesCollected)
        assert collected.values == {"q1": "no", "q2": "TX"}
