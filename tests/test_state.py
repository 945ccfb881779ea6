"""Tests for flowtext.state.LoadState transitions."""

from unittest.mock import MagicMock

import pytest

from flowtext.errors import InvalidStateTransition
from flowtext.state import LoadPhase, LoadState


class TestLoadState:
    def test_starts_unloaded(self):
        state = LoadState()
        assert state.phase is LoadPhase.UNLOADED
        assert state.pending is None
        assert state.handle is None
        assert state.can_start

    def test_begin_publishes_pending(self):
        state = LoadState()
        pending = MagicMock()
        state.begin(pending)

        assert state.phase is LoadPhase.LOADING
        assert state.pending is pending
        assert state.attempts == 1
        assert not state.can_start

    def test_second_begin_rejected(self):
        state = LoadState()
        state.begin(MagicMock())
        with pytest.raises(InvalidStateTransition):
            state.begin(MagicMock())

    def test_succeed_clears_pending(self):
        state = LoadState()
        state.begin(MagicMock())
        state.succeed("handle")

        assert state.phase is LoadPhase.READY
        assert state.handle == "handle"
        assert state.pending is None

    def test_fail_clears_pending_and_allows_restart(self):
        state = LoadState()
        state.begin(MagicMock())
        error = RuntimeError("x")
        state.fail(error)

        assert state.phase is LoadPhase.FAILED
        assert state.error is error
        assert state.pending is None
        assert state.can_start

        state.begin(MagicMock())
        assert state.attempts == 2
        assert state.error is None

    def test_succeed_without_loading_rejected(self):
        with pytest.raises(InvalidStateTransition):
            LoadState().succeed("handle")

    def test_fail_without_loading_rejected(self):
        with pytest.raises(InvalidStateTransition):
            LoadState().fail(RuntimeError("x"))

    def test_ready_cannot_restart_or_reset(self):
        state = LoadState()
        state.begin(MagicMock())
        state.succeed("handle")

        with pytest.raises(InvalidStateTransition):
            state.begin(MagicMock())
        with pytest.raises(InvalidStateTransition):
            state.reset()

    def test_reset_from_loading(self):
        state = LoadState()
        state.begin(MagicMock())
        state.reset()

        assert state.phase is LoadPhase.UNLOADED
        assert state.pending is None
