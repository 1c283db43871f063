"""Binary frame format for handing display buffers to a remote renderer.

Frame layout (little endian):
  Byte 0-1:   0xAA 0x55       Sync marker
  Byte 2:     Kind            KIND_* below
  Byte 3:     Frame number    Rolling 0-255
  Byte 4:     Dimension       Floats per vertex (2 or 4)
  Byte 5-6:   Vertex count    uint16
  Byte 7-10:  Frequency       float32, detected pitch in Hz
  Byte 11-..: Payload         count * dimension float32 values
  Last byte:  Checksum        XOR of bytes 2 .. end-1
"""

import struct

import numpy as np

SYNC = bytes([0xAA, 0x55])
HEADER = struct.Struct("<BBBHf")
MAX_DATAGRAM = 65507

KIND_WAVE = 0x01
KIND_SPECTRUM = 0x02
KIND_SPECTRUM_RANGE = 0x03
KIND_MESH = 0x04
KIND_LIGHT = 0x05


def _xor(data) -> int:
    return int(np.bitwise_xor.reduce(np.frombuffer(bytes(data), dtype=np.uint8),
                                     initial=0))


def encode_frame(kind: int, frame: int, frequency: float, buffer) -> bytes:
    """Build one frame from a VertexBuffer.

    Args:
        kind:      KIND_* identifier
        frame:     rolling frame counter 0-255
        frequency: detected pitch in Hz
        buffer:    VertexBuffer to send
    """
    payload = np.ascontiguousarray(buffer.data, dtype="<f4").tobytes()
    body = HEADER.pack(kind & 0xFF, frame & 0xFF, buffer.dimension,
                       len(buffer), frequency) + payload
    packet = SYNC + body + bytes([_xor(body)])
    if len(packet) > MAX_DATAGRAM:
        raise ValueError(f"frame of {len(packet)} bytes exceeds one datagram")
    return packet


def validate_frame(data):
    """Decode a complete frame.

    Returns a dict with kind/frame/dimension/count/frequency/vertices, or
    None if the sync marker, length or checksum is wrong.
    """
    if len(data) < len(SYNC) + HEADER.size + 1:
        return None
    if data[:2] != SYNC:
        return None

    body = data[2:-1]
    if _xor(body) != data[-1]:
        return None

    kind, frame, dimension, count, frequency = HEADER.unpack_from(body)
    payload = body[HEADER.size:]
    if dimension == 0 or len(payload) != count * dimension * 4:
        return None

    vertices = np.frombuffer(payload, dtype="<f4").reshape(count, dimension)
    return {
        "kind": kind,
        "frame": frame,
        "dimension": dimension,
        "count": count,
        "frequency": frequency,
        "vertices": vertices,
    }
