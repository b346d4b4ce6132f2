"""Tests for playback chain entities."""

from __future__ import annotations

import pytest

from reelscout.domain.entities.playback import (
    InvalidTransitionError,
    PlaybackError,
    PlaybackSignal,
    PlaybackState,
    SessionNotFoundError,
    SourceSelectionError,
)


class TestPlaybackSignal:
    @pytest.mark.parametrize(
        "signal",
        [
            PlaybackSignal.NO_COMPATIBLE_MEDIA,
            PlaybackSignal.NO_PEERS,
            PlaybackSignal.DECODE_ERROR,
            PlaybackSignal.ENGINE_ERROR,
        ],
    )
    def test_failure_signals(self, signal: PlaybackSignal) -> None:
        assert signal.is_failure

    @pytest.mark.parametrize("signal", [PlaybackSignal.READY, PlaybackSignal.PROGRESS])
    def test_non_failure_signals(self, signal: PlaybackSignal) -> None:
        assert not signal.is_failure

    def test_parse_from_wire_value(self) -> None:
        assert PlaybackSignal("no_peers") is PlaybackSignal.NO_PEERS


class TestPlaybackState:
    def test_values_are_wire_strings(self) -> None:
        assert PlaybackState.PLAYING_FALLBACK.value == "playing_fallback"
        assert PlaybackState("auto_selecting") is PlaybackState.AUTO_SELECTING


class TestErrorHierarchy:
    @pytest.mark.parametrize(
        "exc_cls",
        [InvalidTransitionError, SourceSelectionError, SessionNotFoundError],
    )
    def test_all_derive_from_playback_error(self, exc_cls: type) -> None:
        assert issubclass(exc_cls, PlaybackError)
