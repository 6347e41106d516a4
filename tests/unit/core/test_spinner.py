"""Tests for the event loop yield checkpoint."""

from unittest.mock import patch

import pytest

from imagefs.core.spinner import LoopSpinner


class TestLoopSpinner:
    """Tests for LoopSpinner."""

    def test_negative_threshold_rejected(self):
        """A negative threshold raises ValueError."""
        with pytest.raises(ValueError, match="threshold_ms"):
            LoopSpinner(-1)

    def test_zero_threshold_always_starving(self):
        """With a zero threshold every check asks for a yield."""
        spinner = LoopSpinner(0)

        assert spinner.is_starving()

    def test_not_starving_before_threshold(self):
        """A fresh spinner is not starving before the threshold elapses."""
        with patch("imagefs.core.spinner.time.monotonic", return_value=100.0):
            spinner = LoopSpinner(10)
            assert not spinner.is_starving()

    def test_starving_after_threshold(self):
        """The spinner reports starving once the threshold has elapsed."""
        with patch("imagefs.core.spinner.time.monotonic", side_effect=[100.0, 100.02]):
            spinner = LoopSpinner(10)
            assert spinner.is_starving()

    @pytest.mark.asyncio
    async def test_spin_resets_timer(self):
        """spin() yields once and restarts the measurement."""
        spinner = LoopSpinner(50)
        spinner._last_spin -= 1.0
        assert spinner.is_starving()

        await spinner.spin()

        assert spinner.spins == 1
        assert not spinner.is_starving()

    @pytest.mark.asyncio
    async def test_checkpoint_only_yields_when_starving(self):
        """checkpoint() spins only after the threshold."""
        spinner = LoopSpinner(60_000)

        await spinner.checkpoint()
        assert spinner.spins == 0

        starving = LoopSpinner(0)
        await starving.checkpoint()
        assert starving.spins == 1
