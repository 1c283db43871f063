"""SciTuner host entry point.

Captures the microphone, tracks the pitch of the incoming sound and
either prints the nearest note to the console or sends the display
buffers (standing wave, thick-line mesh, spectra) to a renderer over UDP
at ~30 FPS.

Usage:
    scituner [--device NAME] [--sample-rate HZ] [--window N]
    scituner --udp [--host ADDR] [--udp-port PORT]
"""

import argparse
import math
import signal
import threading
import time

from . import config
from .audio_capture import AudioCapture
from .context import REFINEMENTS, AnalysisContext
from .dspmath import ceil2, code_freq, freq_code, note_name
from .protocol import (
    KIND_LIGHT,
    KIND_MESH,
    KIND_SPECTRUM,
    KIND_SPECTRUM_RANGE,
    KIND_WAVE,
    encode_frame,
)
from .refinement import UndertoneCorrector
from .spectrum_processor import build_power_spectrum, build_power_spectrum_range
from .stats import data_avr2
from .udp_sender import UDPSender
from .waveform_processor import (
    build_smooth_standing_wave,
    build_standing_wave,
    shortest_window,
)


def main():
    parser = argparse.ArgumentParser(description="SciTuner pitch tracker")
    parser.add_argument("--device", help="Input device name (default: system input)")
    parser.add_argument("--sample-rate", type=int, default=config.SAMPLE_RATE,
                        help=f"Sample rate in Hz (default: {config.SAMPLE_RATE})")
    parser.add_argument("--window", type=int, default=config.SAMPLE_COUNT,
                        help=f"Analysis window in samples (default: {config.SAMPLE_COUNT})")
    parser.add_argument("--block", type=int, default=config.BLOCK_SIZE,
                        help=f"Capture block in samples (default: {config.BLOCK_SIZE})")
    parser.add_argument("--points", type=int, default=config.POINT_COUNT,
                        help=f"Points in the smoothed wave (default: {config.POINT_COUNT})")
    parser.add_argument("--refinement", choices=REFINEMENTS, default="sinc",
                        help="Sub-bin refinement method (default: sinc)")
    parser.add_argument("--undertone", action="store_true",
                        help="Divide the pitch when undertone energy is found")
    parser.add_argument("--gate", type=float, default=config.GATE_LEVEL,
                        help=f"Mean-square level below which no note is shown "
                             f"(default: {config.GATE_LEVEL})")
    parser.add_argument("--udp", action="store_true",
                        help="Send display frames over UDP instead of printing")
    parser.add_argument("--host", default="255.255.255.255",
                        help="UDP destination (default: broadcast)")
    parser.add_argument("--udp-port", type=int, default=config.UDP_PORT,
                        help=f"UDP port (default: {config.UDP_PORT})")
    args = parser.parse_args()

    if args.udp and ceil2(args.window) < shortest_window(args.sample_rate):
        parser.error(f"--window must be at least {shortest_window(args.sample_rate)} "
                     f"samples at {args.sample_rate} Hz to draw the waveform")

    ctx = AnalysisContext(args.sample_rate, config.MIN_FREQUENCY, args.window,
                          args.points, refinement=args.refinement,
                          undertone=UndertoneCorrector(enabled=args.undertone))

    # Shared state: the context plus the level of the latest block
    lock = threading.Lock()
    level = 0.0

    def audio_callback(chunk):
        nonlocal level
        with lock:
            ctx.push(chunk)
            ctx.recalculate()
            level = data_avr2(chunk) if len(chunk) else 0.0

    print(f"[tuner] Window {ctx.signal_length} samples at {args.sample_rate} Hz "
          f"({ctx.bin_width:.2f} Hz per bin)")
    audio = AudioCapture(callback=audio_callback, device=args.device,
                         sample_rate=args.sample_rate, block_size=args.block)

    udp = None
    if args.udp:
        udp = UDPSender(host=args.host, port=args.udp_port)
        udp.open()

    audio.start()
    print("[tuner] Listening, press Ctrl+C to quit")

    running = True

    def shutdown(sig, frame):
        nonlocal running
        running = False

    signal.signal(signal.SIGINT, shutdown)
    signal.signal(signal.SIGTERM, shutdown)

    frame_interval = 1.0 / config.TARGET_FPS
    frame_num = 0
    try:
        while running:
            t0 = time.monotonic()

            with lock:
                frequency = ctx.peak_frequency
                gated = level < args.gate
                if udp:
                    frames = _build_frames(ctx, frame_num)

            if udp:
                udp.send_frames(frames)
            else:
                _print_console(frequency, gated)

            frame_num = (frame_num + 1) & 0xFF

            elapsed = time.monotonic() - t0
            if elapsed < frame_interval:
                time.sleep(frame_interval - elapsed)

    finally:
        print("\n[tuner] Shutting down...")
        audio.stop()
        if udp:
            udp.close()
        ctx.close()


def _build_frames(ctx, frame_num: int) -> list[bytes]:
    """Encode every display buffer for one frame."""
    f = ctx.peak_frequency
    mesh, light = build_smooth_standing_wave(ctx, config.LINE_THICKNESS)
    return [
        encode_frame(KIND_WAVE, frame_num, f,
                     build_standing_wave(ctx, config.WAVE_VERTICES)),
        encode_frame(KIND_SPECTRUM, frame_num, f,
                     build_power_spectrum(ctx, config.SPECTRUM_VERTICES)),
        encode_frame(KIND_SPECTRUM_RANGE, frame_num, f,
                     build_power_spectrum_range(ctx, config.SPECTRUM_VERTICES)),
        encode_frame(KIND_MESH, frame_num, f, mesh),
        encode_frame(KIND_LIGHT, frame_num, f, light),
    ]


def _print_console(frequency: float, gated: bool):
    """Redraw a one-line note readout."""
    if gated or frequency <= 0:
        print(f"\r  --   {'':>10}        ", end="", flush=True)
        return
    code = freq_code(frequency)
    cents = 1200.0 * math.log2(frequency / code_freq(code))
    print(f"\r{note_name(code):<4} {frequency:9.2f} Hz {cents:+6.1f}c",
          end="", flush=True)


if __name__ == "__main__":
    main()
