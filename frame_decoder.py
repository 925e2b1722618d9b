"""Fixed-layout binary frame decoding.

Frame layout (little-endian, 18 bytes):
    [red (uint32)][ir (uint32)][green (uint32)][accel_x (int16)][accel_y (int16)][accel_z (int16)]

Trailing bytes beyond the first 18 are ignored.
"""

import math
import struct
from typing import NamedTuple, Tuple

from config import ACCEL_COUNTS_PER_G, FRAME_FORMAT, FRAME_SIZE, OPTICAL_SATURATION

_INT16_MIN = -0x8000
_INT16_MAX = 0x7FFF
_UINT32_MAX = 0xFFFFFFFF


class InvalidFrame(ValueError):
    """Raised for frames too short to hold one sample."""


class ChannelSample(NamedTuple):
    """One decoded optical + inertial sample."""

    red: int
    ir: int
    green: int
    accel_x: int
    accel_y: int
    accel_z: int
    timestamp_ms: int = 0


def decode_frame(packet: bytes, timestamp_ms: int = 0) -> ChannelSample:
    """
    Decode one raw frame.

    Args:
        packet: Raw frame bytes, at least FRAME_SIZE long.
        timestamp_ms: Arrival timestamp assigned by the caller.

    Returns:
        ChannelSample with optical counts saturated to the signed 32-bit range.

    Raises:
        InvalidFrame: if the frame is shorter than FRAME_SIZE.
    """
    if packet is None or len(packet) < FRAME_SIZE:
        size = 0 if packet is None else len(packet)
        raise InvalidFrame(f"frame has {size} bytes, need {FRAME_SIZE}")

    red, ir, green, ax, ay, az = struct.unpack_from(FRAME_FORMAT, packet, 0)
    return ChannelSample(
        red=min(red, OPTICAL_SATURATION),
        ir=min(ir, OPTICAL_SATURATION),
        green=min(green, OPTICAL_SATURATION),
        accel_x=ax,
        accel_y=ay,
        accel_z=az,
        timestamp_ms=timestamp_ms,
    )


def encode_frame(red: int, ir: int, green: int, accel_x: int, accel_y: int, accel_z: int) -> bytes:
    """Pack one sample into the wire layout, clamping each field to its range."""

    def _clamp(value, low, high):
        return max(low, min(high, int(value)))

    return struct.pack(
        FRAME_FORMAT,
        _clamp(red, 0, _UINT32_MAX),
        _clamp(ir, 0, _UINT32_MAX),
        _clamp(green, 0, _UINT32_MAX),
        _clamp(accel_x, _INT16_MIN, _INT16_MAX),
        _clamp(accel_y, _INT16_MIN, _INT16_MAX),
        _clamp(accel_z, _INT16_MIN, _INT16_MAX),
    )


def normalize_accel(sample: ChannelSample) -> Tuple[float, float, float]:
    """Convert raw accelerometer counts to g (16384 counts ~ 1 g)."""
    return (
        sample.accel_x / ACCEL_COUNTS_PER_G,
        sample.accel_y / ACCEL_COUNTS_PER_G,
        sample.accel_z / ACCEL_COUNTS_PER_G,
    )


def accel_magnitude(sample: ChannelSample) -> float:
    x, y, z = normalize_accel(sample)
    return math.sqrt(x * x + y * y + z * z)
