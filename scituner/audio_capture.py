"""Microphone capture via sounddevice.

Provides a threaded mono InputStream that delivers float32 chunks to a
callback, one chunk per block.
"""

import numpy as np
import sounddevice as sd

from .config import BLOCK_SIZE, SAMPLE_RATE


def find_input_device(name: str) -> int | None:
    """Return the index of the first input device whose name contains name."""
    for i, dev in enumerate(sd.query_devices()):
        if name.lower() in dev["name"].lower() and dev["max_input_channels"] >= 1:
            return i
    return None


class AudioCapture:
    """Captures mono audio and hands each block to a callback."""

    def __init__(self, callback, device=None, sample_rate=SAMPLE_RATE,
                 block_size=BLOCK_SIZE):
        """
        Args:
            callback:    Called with (chunk: np.ndarray) for each block.
                         chunk is float32, shape (block_size,).
            device:      sounddevice index, device name substring, or None
                         for the system default input.
            sample_rate: Sample rate in Hz.
            block_size:  Samples per block.
        """
        if isinstance(device, str):
            index = find_input_device(device)
            if index is None:
                raise RuntimeError(f"No input device matching {device!r}")
            device = index
        self._callback = callback
        self._device = device
        self._sample_rate = sample_rate
        self._block_size = block_size
        self._stream = None

    @property
    def sample_rate(self):
        return self._sample_rate

    @property
    def block_size(self):
        return self._block_size

    def start(self):
        """Open and start the audio stream."""
        self._stream = sd.InputStream(
            device=self._device,
            channels=1,
            samplerate=self._sample_rate,
            blocksize=self._block_size,
            dtype="float32",
            callback=self._audio_callback,
        )
        self._stream.start()

    def stop(self):
        """Stop and close the audio stream."""
        if self._stream is not None:
            self._stream.stop()
            self._stream.close()
            self._stream = None

    def _audio_callback(self, indata, frames, time_info, status):
        if status:
            print(f"[audio] {status}")
        self._callback(np.ascontiguousarray(indata[:, 0]))
