from __future__ import annotations

from dataclasses import dataclass

import numpy as np


@dataclass(slots=True)
class AnalyzerConfig:
    fft_size: int = 256
    smoothing: float = 0.8
    min_decibels: float = -100.0
    max_decibels: float = -30.0


class FrequencyAnalyzer:
    """Byte frequency data in the manner of a Web Audio AnalyserNode.

    Each call windows the most recent ``fft_size`` samples with a Blackman
    window, smooths the magnitude spectrum over time and maps the decibel
    range onto 0..255.
    """

    def __init__(self, cfg: AnalyzerConfig | None = None) -> None:
        self.cfg = cfg or AnalyzerConfig()
        n = self.cfg.fft_size
        k = np.arange(n, dtype=np.float64)
        self._window = 0.42 - 0.5 * np.cos(2 * np.pi * k / n) + 0.08 * np.cos(4 * np.pi * k / n)
        self._smoothed = np.zeros(n // 2, dtype=np.float64)

    @property
    def frequency_bin_count(self) -> int:
        return self.cfg.fft_size // 2

    def reset(self) -> None:
        self._smoothed[:] = 0.0

    def byte_frequency_data(self, samples: np.ndarray) -> np.ndarray:
        n = self.cfg.fft_size
        block = np.zeros(n, dtype=np.float64)
        tail = np.asarray(samples, dtype=np.float64)[-n:]
        if tail.size:
            block[n - tail.size :] = tail

        spectrum = np.fft.rfft(block * self._window)[: n // 2]
        magnitude = np.abs(spectrum) / n

        tau = self.cfg.smoothing
        self._smoothed = tau * self._smoothed + (1.0 - tau) * magnitude

        with np.errstate(divide="ignore"):
            decibels = 20.0 * np.log10(self._smoothed)

        span = self.cfg.max_decibels - self.cfg.min_decibels
        scaled = np.floor(255.0 / span * (decibels - self.cfg.min_decibels))
        return np.clip(np.nan_to_num(scaled, neginf=0.0), 0, 255).astype(np.uint8)


@dataclass(slots=True, frozen=True)
class Bar:
    x: float
    y: float
    width: float
    height: float


def render_bars(data: np.ndarray, width: int, height: int) -> list[Bar]:
    """Lay out bottom-aligned spectrum bars for a ``width`` x ``height`` canvas.

    Bars that would start beyond the right edge are dropped.
    """

    if data.size == 0:
        return []

    bar_width = width / data.size * 2.5
    bars: list[Bar] = []
    x = 0.0
    for value in data:
        if x >= width:
            break
        bar_height = float(value) / 2
        bars.append(Bar(x=x, y=height - bar_height, width=bar_width, height=bar_height))
        x += bar_width + 1
    return bars
