"""Element-wise operations applied to a GEMM result."""

import math

import numpy as np

_GELU_COEFF = np.float32(math.sqrt(2.0 / math.pi))
_GELU_CUBIC = np.float32(0.044715)


def _f32(x):
    return np.asarray(x, dtype=np.float32)


def silu(x):
    """x * sigmoid(x)."""
    arr = _f32(x)
    with np.errstate(over="ignore"):
        return (arr / (np.float32(1.0) + np.exp(-arr))).astype(np.float32)


def gelu(x):
    """Tanh approximation of GELU."""
    arr = _f32(x)
    inner = _GELU_COEFF * (arr + _GELU_CUBIC * arr * arr * arr)
    return (np.float32(0.5) * arr * (np.float32(1.0) + np.tanh(inner))).astype(np.float32)


def relu(x):
    """max(0, x)."""
    return np.maximum(np.float32(0.0), _f32(x)).astype(np.float32)


def _check_bias(c, bias):
    b = _f32(bias).reshape(-1)
    if b.size != c.shape[-1]:
        raise ValueError(f"bias has {b.size} entries, expected {c.shape[-1]}")
    return b


def _check_res(c, res):
    r = _f32(res)
    if r.shape != c.shape:
        raise ValueError(f"residual shape {r.shape} does not match {c.shape}")
    return r


def add_bias(c, bias):
    """Add a per-column bias to every row of ``c``."""
    arr = _f32(c)
    return (arr + _check_bias(arr, bias)).astype(np.float32)


def add_residual(c, bias, res, gamma=1.0):
    """Return c + bias + gamma * res; ``bias`` may be None."""
    arr = _f32(c)
    out = arr.copy()
    if bias is not None:
        out = out + _check_bias(arr, bias)
    out = out + np.float32(gamma) * _check_res(arr, res)
    return out.astype(np.float32)


def multiply_residual(c, res):
    """Element-wise product of ``c`` and ``res``."""
    arr = _f32(c)
    return (arr * _check_res(arr, res)).astype(np.float32)