"""Unit tests for Action, ActionSet and Rule."""
from __future__ import annotations

import pytest

from helpers import RecordingNotifier
from vault_rebalancer.models import ActionReturn
from vault_rebalancer.rules.model import (
    Action,
    ActionSet,
    Condition,
    ConditionSet,
    FailurePolicy,
    Parameter,
    Rule,
)


def returning(name: str, result: ActionReturn, seen: list | None = None,
              notifier: RecordingNotifier | None = None) -> Action:
    async def run(token):
        if seen is not None:
            seen.append((name, token))
        return result

    return Action(name, run, notifier)


def raising(name: str, seen: list | None = None) -> Action:
    async def run(token):
        if seen is not None:
            seen.append((name, token))
        raise RuntimeError("boom")

    return Action(name, run)


def gate(value: bool) -> ConditionSet:
    async def get_value():
        return 1

    return ConditionSet([Condition("gate", Parameter("p", get_value), 1 if value else 0, "==")])


class TestAction:
    @pytest.mark.asyncio
    async def test_exception_becomes_failed_result(self, notifier: RecordingNotifier) -> None:
        async def run(token):
            raise ValueError("pool missing")

        result = await Action("explode", run, notifier).run()

        assert result.is_success is False
        assert result.has_tx_sent is False
        assert result.error == "pool missing"
        assert notifier.errors == ["Error running action explode: pool missing"]

    @pytest.mark.asyncio
    async def test_reported_failure_keeps_tx_flag_and_gets_reason(
        self, notifier: RecordingNotifier
    ) -> None:
        action = returning("half", ActionReturn(False, True, "out1"), notifier=notifier)
        result = await action.run()

        assert result.is_success is False
        assert result.has_tx_sent is True
        assert result.continuation_token == "out1"
        assert "half" in result.error
        assert len(notifier.errors) == 1

    @pytest.mark.asyncio
    async def test_success_is_returned_unchanged(self) -> None:
        expected = ActionReturn(True, True, "out9", status_message="done")
        assert await returning("ok", expected).run("in") == expected


class TestActionSet:
    @pytest.mark.asyncio
    async def test_token_threads_only_through_actions_that_sent(self) -> None:
        seen: list = []
        actions = [
            returning("a", ActionReturn(True, True, "tok-a"), seen),
            returning("b", ActionReturn(True, False, "ignored"), seen),
            returning("c", ActionReturn(True, True, "tok-c"), seen),
            returning("d", ActionReturn(True, False), seen),
        ]
        result = await ActionSet("chain", "n/a", actions).run()

        assert seen == [("a", None), ("b", "tok-a"), ("c", "tok-a"), ("d", "tok-c")]
        assert result.continuation_token == "tok-c"
        assert result.is_success is True
        assert result.has_tx_sent is True

    @pytest.mark.asyncio
    async def test_failed_action_does_not_stop_the_set(self, notifier: RecordingNotifier) -> None:
        seen: list = []
        actions = [
            returning("first", ActionReturn(False, False), seen),
            returning("second", ActionReturn(True, True, "tok"), seen),
        ]
        result = await ActionSet("set", "finished", actions, notifier).run()

        assert [name for name, _ in seen] == ["first", "second"]
        assert result.is_success is False
        assert result.has_tx_sent is True
        assert "first" in result.error
        assert notifier.sent == []

    @pytest.mark.asyncio
    async def test_raised_exception_does_not_stop_the_set(self) -> None:
        seen: list = []
        actions = [raising("boom", seen), returning("after", ActionReturn(True, False), seen)]
        result = await ActionSet("set", "n/a", actions).run()

        assert [name for name, _ in seen] == ["boom", "after"]
        assert result.is_success is False
        assert result.has_tx_sent is False

    @pytest.mark.asyncio
    async def test_abort_policy_skips_remaining_actions(self) -> None:
        seen: list = []
        actions = [
            returning("first", ActionReturn(False, True, "tok"), seen),
            returning("second", ActionReturn(True, True, "tok2"), seen),
        ]
        action_set = ActionSet("set", "done", actions, failure_policy=FailurePolicy.ABORT)
        result = await action_set.run()

        assert [name for name, _ in seen] == ["first"]
        assert result.is_success is False
        assert result.has_tx_sent is True
        assert result.continuation_token == "tok"

    @pytest.mark.asyncio
    async def test_finish_message_sent_on_success(self, notifier: RecordingNotifier) -> None:
        action_set = ActionSet("set", "All good", [returning("a", ActionReturn(True, True, "t"))], notifier)
        await action_set.run()
        assert notifier.sent == ["All good"]

    @pytest.mark.asyncio
    async def test_last_status_message_wins(self, notifier: RecordingNotifier) -> None:
        actions = [
            returning("a", ActionReturn(True, False, status_message="first")),
            returning("b", ActionReturn(True, False, status_message="second")),
        ]
        result = await ActionSet("set", "default", actions, notifier).run()
        assert notifier.sent == ["second"]
        assert result.status_message == "second"

    @pytest.mark.asyncio
    async def test_silent_status_message_suppresses_notification(
        self, notifier: RecordingNotifier
    ) -> None:
        actions = [returning("a", ActionReturn(True, False, status_message="n/a"))]
        result = await ActionSet("set", "Would be sent", actions, notifier).run()
        assert notifier.sent == []
        assert result.is_success is True

    @pytest.mark.asyncio
    async def test_empty_set_succeeds_without_transactions(self, notifier: RecordingNotifier) -> None:
        result = await ActionSet("Compounding Mode 0", "n/a", [], notifier).run()
        assert result == ActionReturn(True, False, None, "n/a", None)
        assert notifier.sent == []


class TestRule:
    @pytest.mark.asyncio
    async def test_closed_gate_skips_actions(self) -> None:
        seen: list = []
        rule = Rule("r", "desc", gate(False),
                    ActionSet("s", "n/a", [returning("a", ActionReturn(True, True), seen)]))
        result = await rule.run()

        assert result == ActionReturn(is_success=True, has_tx_sent=False)
        assert seen == []

    @pytest.mark.asyncio
    async def test_open_gate_returns_action_set_result(self) -> None:
        rule = Rule("r", "desc", gate(True),
                    ActionSet("s", "n/a", [returning("a", ActionReturn(True, True, "tok"))]))
        result = await rule.run()

        assert result.has_tx_sent is True
        assert result.continuation_token == "tok"
