"""GEMM with float32 A and C and a half-precision B stored in packed tiles.

B is split into tiles of ``block_rows`` x ``block_cols`` (8 x 8 by default).
Tiles are stored K-block by K-block and, inside each K-block, N-block by
N-block. Each tile is stored row by row and padded with zeros where B ends.
Every function returns a new float32 result and leaves its arguments untouched.
"""

import dataclasses

import numpy as np

from . import epilogue

BLOCK_ROWS = 8
BLOCK_COLS = 8


@dataclasses.dataclass(frozen=True)
class PackedB:
    """A K x N float16 matrix stored as zero-padded tiles.

    ``tiles`` has shape (K blocks, N blocks, block_rows, block_cols); its
    flattened form is the packed buffer.
    """

    tiles: np.ndarray
    k: int
    n: int
    block_rows: int
    block_cols: int

    @property
    def flat(self):
        """The packed buffer as one contiguous float16 array."""
        return self.tiles.reshape(-1)

    def get(self, k, n):
        """Return element B[k, n] as float16."""
        if not (0 <= k < self.k and 0 <= n < self.n):
            raise IndexError(f"({k}, {n}) is outside a {self.k} x {self.n} matrix")
        return self.tiles[k // self.block_rows, n // self.block_cols,
                          k % self.block_rows, n % self.block_cols]

    def _dense(self):
        kb, nb, br, bc = self.tiles.shape
        full = self.tiles.transpose(0, 2, 1, 3).reshape(kb * br, nb * bc)
        return full[:self.k, :self.n]


def _matrix(x, name, dtype):
    arr = np.asarray(x, dtype=dtype)
    if arr.ndim != 2:
        raise ValueError(f"{name} must be a 2-D matrix, got {arr.ndim} dimensions")
    return arr


def pack_b_block(b, trans_b=False, block_rows=BLOCK_ROWS, block_cols=BLOCK_COLS):
    """Pack B (K x N, or N x K when ``trans_b``) into tiles of the given size."""
    if block_rows <= 0 or block_cols <= 0:
        raise ValueError("block sizes must be positive")
    arr = _matrix(b, "b", np.float16)
    b_kn = arr.T if trans_b else arr
    k, n = b_kn.shape
    kb = -(-k // block_rows)
    nb = -(-n // block_cols)
    padded = np.zeros((kb * block_rows, nb * block_cols), dtype=np.float16)
    padded[:k, :n] = b_kn
    tiles = np.ascontiguousarray(
        padded.reshape(kb, block_rows, nb, block_cols).transpose(0, 2, 1, 3))
    return PackedB(tiles, k, n, block_rows, block_cols)


def pack_b(b, trans_b=False):
    """Pack B into the default 8 x 8 tiles."""
    return pack_b_block(b, trans_b, BLOCK_ROWS, BLOCK_COLS)


def _start(c, m, n, beta):
    if c is not None:
        arr = _matrix(c, "c", np.float32)
        if arr.shape != (m, n):
            raise ValueError(f"c has shape {arr.shape}, expected {(m, n)}")
    if c is None or beta == 0.0:
        return np.zeros((m, n), dtype=np.float32)
    out = arr.copy()
    if beta != 1.0:
        out *= np.float32(beta)
    return out


def compute(a, packed_b, c=None, *, alpha=1.0, beta=0.0, trans_a=False):
    """C = alpha * op(A) @ B + beta * C; C is not read when beta is zero."""
    if not isinstance(packed_b, PackedB):
        raise TypeError("packed_b must be a PackedB")
    a_arr = _matrix(a, "a", np.float32)
    a_mk = a_arr.T if trans_a else a_arr
    if a_mk.shape[1] != packed_b.k:
        raise ValueError(
            f"inner dimensions differ: A gives K={a_mk.shape[1]}, B gives K={packed_b.k}")
    out = _start(c, a_mk.shape[0], packed_b.n, beta)
    out += np.float32(alpha) * (a_mk @ packed_b._dense().astype(np.float32))
    return out


def hgemm(a, b, c=None, *, alpha=1.0, beta=0.0, trans_a=False, trans_b=False):
    """C = alpha * op(A) @ op(B) + beta * C with float16 B (N x K when trans_b)."""
    return compute(a, pack_b(b, trans_b), c, alpha=alpha, beta=beta, trans_a=trans_a)


def compute_silu(a, packed_b, c=None, *, alpha=1.0, beta=0.0, trans_a=False):
    """C = SILU(alpha * op(A) @ B + beta * C)."""
    return epilogue.silu(compute(a, packed_b, c, alpha=alpha, beta=beta, trans_a=trans_a))


def compute_gelu(a, packed_b, c=None, *, alpha=1.0, beta=0.0, trans_a=False):
    """C = GELU(alpha * op(A) @ B + beta * C)."""
    return epilogue.gelu(compute(a, packed_b, c, alpha=alpha, beta=beta, trans_a=trans_a))


def compute_biasadd(a, packed_b, c, bias, *, alpha=1.0, beta=0.0, trans_a=False):
    """C = alpha * op(A) @ B + beta * C + bias; bias may be None."""
    out = compute(a, packed_b, c, alpha=alpha, beta=beta, trans_a=trans_a)
    return out if bias is None else epilogue.add_bias(out, bias)


def compute_biasadd_relu(a, packed_b, c, bias, *, alpha=1.0, beta=0.0, trans_a=False):
    """C = RELU(alpha * op(A) @ B + beta * C + bias)."""
    out = compute_biasadd(a, packed_b, c, bias, alpha=alpha, beta=beta, trans_a=trans_a)
    return epilogue.relu(out)


def compute_residential(a, packed_b, c, bias, res, *, alpha=1.0, beta=0.0, trans_a=False):
    """C = alpha * op(A) @ B + beta * C + bias + res; bias may be None."""
    out = compute(a, packed_b, c, alpha=alpha, beta=beta, trans_a=trans_a)
    return epilogue.add_residual(out, bias, res)


def compute_resext(a, packed_b, c, bias, gamma, res, *, alpha=1.0, beta=0.0, trans_a=False):
    """C = alpha * op(A) @ B + beta * C + bias + gamma * res; bias may be None."""
    out = compute(a, packed_b, c, alpha=alpha, beta=beta, trans_a=trans_a)
    return epilogue.add_residual(out, bias, res, gamma)


def compute_resmul(a, packed_b, c, res, *, alpha=1.0, beta=0.0, trans_a=False):
    """C = (alpha * op(A) @ B + beta * C) * res."""
    out = compute(a, packed_b, c, alpha=alpha, beta=beta, trans_a=trans_a)
    return epilogue.multiply_residual(out, res)


def small_hgemm(a, b):
    """Plain C = A @ B with float16 B, for small matrices."""
    a_arr = _matrix(a, "a", np.float32)
    b_arr = _matrix(b, "b", np.float16).astype(np.float32)
    if a_arr.shape[1] != b_arr.shape[0]:
        raise ValueError(
            f"inner dimensions differ: A gives K={a_arr.shape[1]}, B gives K={b_arr.shape[0]}")
    return (a_arr @ b_arr).astype(np.float32)