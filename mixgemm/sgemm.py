"""Single-precision GEMM: C = alpha * op(A) @ op(B) + beta * C.

Matrices are two-dimensional arrays; strides are whatever the arrays carry.
A packed B is simply B laid out contiguously as K x N. Every function
returns a new float32 result and leaves its arguments untouched.
"""

import numpy as np

from . import epilogue


def _matrix(x, name):
    arr = np.asarray(x, dtype=np.float32)
    if arr.ndim != 2:
        raise ValueError(f"{name} must be a 2-D matrix, got {arr.ndim} dimensions")
    return arr


def _op(x, name, transposed):
    arr = _matrix(x, name)
    return arr.T if transposed else arr


def _scaled_c(c, m, n, beta):
    if c is None:
        return np.zeros((m, n), dtype=np.float32)
    arr = _matrix(c, "c")
    if arr.shape != (m, n):
        raise ValueError(f"c has shape {arr.shape}, expected {(m, n)}")
    out = arr.copy()
    if beta != 1.0:
        out *= np.float32(beta)
    return out


def _multiply(a, b, c, alpha, beta):
    if a.shape[1] != b.shape[0]:
        raise ValueError(
            f"inner dimensions differ: A gives K={a.shape[1]}, B gives K={b.shape[0]}"
        )
    out = _scaled_c(c, a.shape[0], b.shape[1], beta)
    out += np.float32(alpha) * (a @ b)
    return out


def sgemm_single_thread(a, b, c=None, *, alpha=1.0, beta=0.0, trans_a=False, trans_b=False):
    """C = alpha * op(A) @ op(B) + beta * C; A is K x M if trans_a, B is N x K if trans_b."""
    return _multiply(_op(a, "a", trans_a), _op(b, "b", trans_b), c, alpha, beta)


def sgemm(a, b, c=None, *, alpha=1.0, beta=0.0, trans_a=False, trans_b=False):
    """C = alpha * op(A) @ op(B) + beta * C."""
    return sgemm_single_thread(a, b, c, alpha=alpha, beta=beta, trans_a=trans_a, trans_b=trans_b)


def pack_b(b, trans_b=False):
    """Lay B out contiguously as K x N; B is N x K when ``trans_b``."""
    return np.ascontiguousarray(_op(b, "b", trans_b))


def compute(a, packed_b, c=None, *, alpha=1.0, beta=0.0, trans_a=False):
    """C = alpha * op(A) @ packedB + beta * C."""
    return _multiply(_op(a, "a", trans_a), _matrix(packed_b, "packed_b"), c, alpha, beta)


def compute_silu(a, packed_b, c=None, *, alpha=1.0, beta=0.0, trans_a=False):
    """C = SILU(alpha * op(A) @ packedB + beta * C)."""
    return epilogue.silu(compute(a, packed_b, c, alpha=alpha, beta=beta, trans_a=trans_a))


def compute_gelu(a, packed_b, c=None, *, alpha=1.0, beta=0.0, trans_a=False):
    """C = GELU(alpha * op(A) @ packedB + beta * C)."""
    return epilogue.gelu(compute(a, packed_b, c, alpha=alpha, beta=beta, trans_a=trans_a))


def compute_biasadd(a, packed_b, c, bias, *, alpha=1.0, beta=0.0, trans_a=False):
    """C = alpha * op(A) @ packedB + beta * C + bias."""
    out = compute(a, packed_b, c, alpha=alpha, beta=beta, trans_a=trans_a)
    return epilogue.add_bias(out, bias)


def compute_biasadd_relu(a, packed_b, c, bias, *, alpha=1.0, beta=0.0, trans_a=False):
    """C = RELU(alpha * op(A) @ packedB + beta * C + bias)."""
    out = compute_biasadd(a, packed_b, c, bias, alpha=alpha, beta=beta, trans_a=trans_a)
    return epilogue.relu(out)


def compute_residential(a, packed_b, c, bias, res, *, alpha=1.0, beta=0.0, trans_a=False):
    """C = alpha * op(A) @ packedB + beta * C + bias + res."""
    out = compute_biasadd(a, packed_b, c, bias, alpha=alpha, beta=beta, trans_a=trans_a)
    return epilogue.add_residual(out, None, res)


def compute_resext(a, packed_b, c, bias, gamma, res, *, alpha=1.0, beta=0.0, trans_a=False):
    """C = alpha * op(A) @ packedB + beta * C + bias + gamma * res; bias may be None."""
    out = compute(a, packed_b, c, alpha=alpha, beta=beta, trans_a=trans_a)
    return epilogue.add_residual(out, bias, res, gamma)


def compute_resmul(a, packed_b, c, res, *, alpha=1.0, beta=0.0, trans_a=False):
    """C = (alpha * op(A) @ packedB + beta * C) * res."""
    out = compute(a, packed_b, c, alpha=alpha, beta=beta, trans_a=trans_a)
    return epilogue.multiply_residual(out, res)


def small_sgemm(a, b):
    """Plain C = A @ B for small matrices."""
    return _multiply(_matrix(a, "a"), _matrix(b, "b"), None, 1.0, 0.0)