"""Bfloat16 bit-pattern conversions to and from float32.

A bfloat16 value is the upper 16 bits of a float32. Loading widens each
16-bit pattern by shifting it into the high half. Storing adds a rounding
bias of 0x7FFF to the float32 bits and keeps the high half. Ties therefore
round down rather than to even.
"""

import numpy as np

_ROUNDING_BIAS = np.uint32(0x7FFF)
_SHIFT = np.uint32(16)


def _as_bits(bits):
    arr = np.asarray(bits)
    if arr.dtype.kind not in "ui":
        raise TypeError("bfloat16 bit patterns must be integers")
    if arr.size and (int(arr.min()) < 0 or int(arr.max()) > 0xFFFF):
        raise ValueError("bfloat16 bit patterns must lie in 0..0xFFFF")
    return arr.astype(np.uint16)


def _mask_lanes(mask, count):
    if isinstance(mask, bool) or not isinstance(mask, (int, np.integer)):
        raise TypeError("mask must be an integer bit mask")
    mask = int(mask)
    if mask < 0:
        raise ValueError("mask must be non-negative")
    return np.array([(mask >> lane) & 1 for lane in range(count)], dtype=bool)


def to_float32(bits):
    """Widen bfloat16 bit patterns to float32 values of the same shape."""
    arr = _as_bits(bits)
    widened = arr.reshape(-1).astype(np.uint32) << _SHIFT
    return widened.view(np.float32).reshape(arr.shape)


def from_float32(values):
    """Narrow float32 values to bfloat16 bit patterns (uint16)."""
    arr = np.ascontiguousarray(np.asarray(values, dtype=np.float32))
    raw = arr.reshape(-1).view(np.uint32)
    rounded = raw + _ROUNDING_BIAS
    return (rounded >> _SHIFT).astype(np.uint16).reshape(arr.shape)


def masked_load(bits, mask):
    """Widen the lanes whose mask bit is set; other lanes become zero."""
    arr = _as_bits(bits).reshape(-1)
    selected = _mask_lanes(mask, arr.size)
    return np.where(selected, to_float32(arr), np.float32(0.0)).astype(np.float32)


def masked_store(existing, values, mask):
    """Return ``existing`` with the masked lanes replaced by narrowed ``values``."""
    current = _as_bits(existing).reshape(-1)
    incoming = np.asarray(values, dtype=np.float32).reshape(-1)
    if incoming.size != current.size:
        raise ValueError("values and existing must have the same number of lanes")
    selected = _mask_lanes(mask, current.size)
    result = current.copy()
    result[selected] = from_float32(incoming)[selected]
    return result