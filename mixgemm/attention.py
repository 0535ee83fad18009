"""Small mixed-precision GEMMs for the next-token steps of attention.

Bfloat16 operands and results are uint16 bit patterns (see ``bf16``); half
precision operands are numpy float16 values. Sums are taken in float32.
A one-dimensional ``a`` is read as a single row, so the result has one row.

The paged variants read B from a flat buffer split into blocks of
``block_size`` tokens. ``block_indices[i]`` names the physical block that
holds logical block ``i``, and a block starts ``block_stride`` elements after
the previous one. Within a block, rows are ``ldb`` elements apart.
"""

import numpy as np

from . import bf16


def _as_rows(arr, name):
    if arr.ndim == 1:
        arr = arr.reshape(1, -1)
    if arr.ndim != 2:
        raise ValueError(f"{name} must be a 1-D row or a 2-D matrix, got {arr.ndim} dimensions")
    return arr


def _f32_rows(x, name):
    return _as_rows(np.asarray(x, dtype=np.float32), name)


def _bf16_rows(bits, name):
    return _as_rows(bf16.to_float32(bits), name)


def _bf16_matrix(bits, name):
    arr = bf16.to_float32(bits)
    if arr.ndim != 2:
        raise ValueError(f"{name} must be a 2-D matrix, got {arr.ndim} dimensions")
    return arr


def _f16_matrix(x, name):
    arr = np.asarray(x, dtype=np.float16).astype(np.float32)
    if arr.ndim != 2:
        raise ValueError(f"{name} must be a 2-D matrix, got {arr.ndim} dimensions")
    return arr


def _op_b(b, trans_b):
    """Return B viewed as K x N."""
    return b.T if trans_b else b


def _product(a, b_kn):
    if a.shape[1] != b_kn.shape[0]:
        raise ValueError(
            f"inner dimensions differ: A gives K={a.shape[1]}, B gives K={b_kn.shape[0]}"
        )
    return (a @ b_kn).astype(np.float32)


def _single_row(a):
    if a.shape[0] != 1:
        raise ValueError(f"paged GEMM needs exactly one row in A, got {a.shape[0]}")
    return a[0]


def _paged_columns(buffer, k, n, ldb, block_indices, block_stride, block_size, trans_b):
    """Gather the logical columns of B from a paged buffer as an n x k matrix."""
    if block_size <= 0:
        raise ValueError("block_size must be positive")
    if n < 0:
        raise ValueError("n must be non-negative")
    cols = np.arange(n, dtype=np.int64)
    logical_block = cols // block_size
    indices = np.asarray(block_indices, dtype=np.int64).reshape(-1)
    needed = -(-n // block_size)
    if indices.size < needed:
        raise IndexError(f"{needed} block indices needed, {indices.size} given")
    base = indices[logical_block] * block_stride
    within = cols % block_size
    ks = np.arange(k, dtype=np.int64)
    if trans_b:
        offsets = base[:, None] + within[:, None] * ldb + ks[None, :]
    else:
        offsets = base[:, None] + ks[None, :] * ldb + within[:, None]
    if offsets.size and (offsets.min() < 0 or offsets.max() >= buffer.size):
        raise IndexError("paged access falls outside the B buffer")
    return buffer[offsets].reshape(n, k)


def small_sgemm_bf16bf16f32(a, b, trans_b=True):
    """C = A @ op(B) with bfloat16 A and B and a float32 result.

    B is N x K when ``trans_b`` (the Q @ K^T layout), K x N otherwise.
    """
    a_rows = _bf16_rows(a, "a")
    b_kn = _op_b(_bf16_matrix(b, "b"), trans_b)
    return _product(a_rows, b_kn)


def small_sgemm_bf16bf16f32_paged(a, b, n, ldb, block_indices, block_stride, block_size,
                                  trans_b=True):
    """One bfloat16 row of A times a paged bfloat16 B; returns N float32 values."""
    row = _single_row(_bf16_rows(a, "a"))
    buffer = bf16.to_float32(b).reshape(-1)
    columns = _paged_columns(buffer, row.size, n, ldb, block_indices, block_stride,
                             block_size, trans_b)
    return (columns @ row).astype(np.float32)


def small_sgemm_f32bf16bf16(a, b, trans_b=False):
    """C = A @ op(B) with float32 A, bfloat16 B and a bfloat16 result.

    B is K x N by default (the softmax(Q @ K^T) @ V layout), N x K when ``trans_b``.
    """
    a_rows = _f32_rows(a, "a")
    b_kn = _op_b(_bf16_matrix(b, "b"), trans_b)
    return bf16.from_float32(_product(a_rows, b_kn))


def small_sgemm_f32bf16bf16_paged(a, b, n, ldb, block_indices, block_stride, block_size,
                                  trans_b=False):
    """One float32 row of A times a paged bfloat16 B; returns N bfloat16 patterns."""
    row = _single_row(_f32_rows(a, "a"))
    buffer = bf16.to_float32(b).reshape(-1)
    columns = _paged_columns(buffer, row.size, n, ldb, block_indices, block_stride,
                             block_size, trans_b)
    return bf16.from_float32((columns @ row).astype(np.float32))


def small_sgemm_f32f16bf16(a, b, c=None, *, alpha=1.0, beta=0.0, trans_b=False):
    """C = alpha * A @ op(B) + beta * C with float16 B and bfloat16 C.

    When ``beta`` is zero the incoming C is not read and may be None.
    """
    a_rows = _f32_rows(a, "a")
    b_kn = _op_b(_f16_matrix(b, "b"), trans_b)
    product = _product(a_rows, b_kn)
    if beta != 0.0:
        if c is None:
            raise ValueError("c is required when beta is non-zero")
        current = _bf16_rows(c, "c")
        if current.shape != product.shape:
            raise ValueError(f"c has shape {current.shape}, expected {product.shape}")
        result = np.float32(beta) * current
    else:
        result = np.zeros_like(product)
    result = result + np.float32(alpha) * product
    return bf16.from_float32(result.astype(np.float32))