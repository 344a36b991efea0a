"""Short-term energy and dominant-frequency features of PCM windows."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np

from ...errors import InvalidInputError
from .types import AudioFormat

if TYPE_CHECKING:
    from .sampler import AudioWindow

# Gain applied when converting PCM bytes to the real-valued FFT input.
AMPLIFICATION = 100.0


@dataclass(frozen=True)
class FeatureSample:
    energy: int
    frequency: int


def energy(data: bytes) -> int:
    """
    RMS level of a byte window.

    Two passes over the signed byte values: first the integer mean (truncated
    toward zero), then the root-mean-square of the deviations from it, rounded
    half up.
    """
    values = np.frombuffer(data, dtype=np.int8).astype(np.int64)
    if values.size == 0:
        return 0
    mean = int(int(values.sum()) / values.size)
    deviations = (values - mean).astype(np.float64)
    return int(np.sqrt(np.mean(deviations ** 2)) + 0.5)


def bytes_to_samples(data: bytes, sample_width: int, gain: float = AMPLIFICATION) -> np.ndarray:
    """
    Convert little-endian PCM bytes to amplified float samples.

    The result has ``len(data) - sample_width + 1`` entries; only the first
    ``len(data) // sample_width`` hold decoded samples, the tail is zero. Callers who
    need a power-of-two FFT length pad the input with ``sample_width - 1`` bytes.
    """
    length = len(data) - sample_width + 1
    if length <= 0:
        return np.zeros(0, dtype=np.float64)

    raw = np.frombuffer(data, dtype=np.uint8).astype(np.int64)
    filled = (length + sample_width - 1) // sample_width
    sample = np.zeros(filled, dtype=np.int64)
    for b in range(sample_width):
        column = raw[b::sample_width][:filled]
        if b == sample_width - 1 and sample_width > 1:
            # most significant byte carries the sign
            column = np.where(column >= 128, column - 256, column)
        sample += column << (8 * b)

    out = np.zeros(length, dtype=np.float64)
    out[:filled] = gain * (sample / 32768.0)
    return out


def fft(x) -> np.ndarray:
    """Recursive radix-2 Cooley-Tukey FFT. Length must be a power of two."""
    x = np.asarray(x, dtype=np.complex128)
    n = len(x)
    if n < 1 or n & (n - 1):
        raise InvalidInputError(f"FFT length {n} is not a power of 2")
    return _fft(x)


def _fft(x: np.ndarray) -> np.ndarray:
    n = len(x)
    if n == 1:
        return x.copy()
    even = _fft(x[0::2])
    odd = _fft(x[1::2])
    twiddled = np.exp(-2j * np.pi * np.arange(n // 2) / n) * odd
    return np.concatenate([even + twiddled, even - twiddled])


def is_harmonic(current: int, proposed: int) -> bool:
    """True if bin `current` is a multiple of bin `proposed`; bins 0-2 never count."""
    return current > 2 and proposed > 2 and current % proposed == 0


def fundamental_bin(spectrum: np.ndarray) -> int:
    """
    Index of the strongest bin in the first half of `spectrum` that is not a
    harmonic of the best candidate seen so far, or -1 if every bin is silent.
    """
    magnitudes = np.abs(spectrum[: len(spectrum) // 2])
    index = -1
    best = 0.0
    for i, magnitude in enumerate(magnitudes):
        if magnitude > best and not is_harmonic(i, index):
            best = magnitude
            index = i
    return index


def bin_size(sample_rate: int, fft_length: int) -> int:
    """Hz covered by one FFT bin, rounded half up."""
    return int(sample_rate / fft_length + 0.5)


def dominant_frequency(data: bytes, audio_format: AudioFormat) -> int:
    """Estimated pitch in Hz of a PCM window; 0 for a silent window."""
    spectrum = fft(bytes_to_samples(data, audio_format.sample_width))
    index = fundamental_bin(spectrum)
    if index < 0:
        return 0
    return index * bin_size(audio_format.sample_rate, len(spectrum))


def extract(window: "AudioWindow") -> FeatureSample:
    """
    Energy and frequency of one window.

    The window is zero-padded to the next power-of-two byte length, plus
    `sample_width - 1` bytes so the sample array has exactly that FFT length.
    """
    fmt = window.audio_format
    fft_length = 1 << max(len(window.data) - 1, 0).bit_length()
    padded = window.data + b"\x00" * (fft_length - len(window.data) + fmt.sample_width - 1)
    return FeatureSample(
        energy=energy(window.data),
        frequency=dominant_frequency(padded, fmt),
    )
