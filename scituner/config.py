# scituner/config.py -- session defaults for the tuner host
#
# SAMPLE_COUNT is rounded up to a power of two by the analysis context.
# The standing wave needs about 5 wavelengths of history, so a 16384
# sample window at 44.1 kHz reaches down to the 20 Hz display floor.

SAMPLE_RATE = 44100
SAMPLE_COUNT = 16384
BLOCK_SIZE = 2205  # 50 ms packets
MIN_FREQUENCY = 20.0

POINT_COUNT = 128
WAVE_VERTICES = 256
SPECTRUM_VERTICES = 512
LINE_THICKNESS = 0.02

# Mean-square level below which the readout shows no note
GATE_LEVEL = 1e-4

TARGET_FPS = 30
UDP_PORT = 4210
