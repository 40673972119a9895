"""Tests for fade timelines."""

from __future__ import annotations

import asyncio

import pytest

from privacy_blur.devices.animation import (
    Fade,
    ManualAnimationDriver,
    TickAnimationDriver,
    ease_in_out,
    get_easing,
    linear,
)


class _Recorder:
    def __init__(self) -> None:
        self.completions: list[bool] = []
        self.values: list[float] = []

    def done(self, finished: bool) -> None:
        self.completions.append(finished)

    def update(self, value: float) -> None:
        self.values.append(value)


class TestEasing:
    def test_endpoints(self):
        assert ease_in_out(0.0) == pytest.approx(0.0)
        assert ease_in_out(1.0) == pytest.approx(1.0)
        assert ease_in_out(0.5) == pytest.approx(0.5)

    def test_slow_start(self):
        assert ease_in_out(0.1) < linear(0.1)

    def test_unknown_name_falls_back(self):
        assert get_easing("bounce") is ease_in_out


class TestFade:
    def test_linear_progress_and_single_completion(self):
        rec = _Recorder()
        fade = Fade(0.0, 1.0, 100, rec.done, rec.update, linear)
        fade.advance(50)
        assert fade.value == pytest.approx(0.5)
        fade.advance(60)
        fade.advance(10)
        assert fade.value == 1.0
        assert rec.completions == [True]

    def test_cancel_fires_once_with_false(self):
        rec = _Recorder()
        fade = Fade(1.0, 0.0, 100, rec.done, rec.update, linear)
        fade.advance(25)
        assert fade.cancel() == pytest.approx(0.75)
        fade.cancel()
        fade.advance(100)
        assert rec.completions == [False]
        assert fade.value == pytest.approx(0.75)


class TestManualDriver:
    def test_zero_duration_completes_synchronously(self):
        rec = _Recorder()
        driver = ManualAnimationDriver()
        handle = driver.animate(0.0, 1.0, 0, rec.done, rec.update)
        assert handle.done
        assert rec.completions == [True]
        assert rec.values == [1.0]
        assert driver.active == []

    def test_advance(self):
        rec = _Recorder()
        driver = ManualAnimationDriver(easing="linear")
        driver.animate(0.0, 1.0, 200, rec.done, rec.update)
        driver.advance(100)
        assert rec.values[-1] == pytest.approx(0.5)
        driver.advance(100)
        assert rec.completions == [True]
        assert driver.active == []

    def test_callback_may_start_another_fade(self):
        driver = ManualAnimationDriver(easing="linear")
        chained = _Recorder()

        def first_done(finished: bool) -> None:
            driver.animate(1.0, 0.0, 50, chained.done)

        driver.animate(0.0, 1.0, 50, first_done)
        driver.advance(50)
        assert len(driver.active) == 1
        driver.advance(50)
        assert chained.completions == [True]


class TestTickDriver:
    @pytest.mark.asyncio
    async def test_runs_to_completion(self):
        rec = _Recorder()
        driver = TickAnimationDriver(tick_hz=200)
        driver.animate(0.0, 1.0, 30, rec.done, rec.update)
        for _ in range(100):
            if rec.completions:
                break
            await asyncio.sleep(0.01)
        assert rec.completions == [True]
        assert rec.values[-1] == 1.0
        assert all(0.0 <= v <= 1.0 for v in rec.values)

    @pytest.mark.asyncio
    async def test_cancel_stops_updates(self):
        rec = _Recorder()
        driver = TickAnimationDriver(tick_hz=200)
        handle = driver.animate(0.0, 1.0, 10_000, rec.done, rec.update)
        await asyncio.sleep(0.02)
        value = handle.cancel()
        seen = len(rec.values)
        await asyncio.sleep(0.03)
        assert rec.completions == [False]
        assert len(rec.values) == seen
        assert 0.0 <= value < 1.0

    @pytest.mark.asyncio
    async def test_zero_duration_synchronous(self):
        rec = _Recorder()
        handle = TickAnimationDriver().animate(1.0, 0.0, 0, rec.done)
        assert handle.done
        assert rec.completions == [True]
