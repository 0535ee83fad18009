# mixgemm

General matrix multiplication, `C = alpha * op(A) @ op(B) + beta * C`, on NumPy
arrays whose operands are stored in different precisions: float32, float16 and
bfloat16. Sums are taken in float32. Every function returns a new array and
leaves its arguments untouched. The code aims to be clear rather than fast.

## Installation

```
pip install .
```

To run the test suite:

```
pip install ".[test]"
pytest
```

## Modules

| Module | Contents |
| --- | --- |
| `mixgemm.sgemm` | float32 × float32 → float32, with fused epilogues |
| `mixgemm.hgemm_f16` | float32 × float16 → float32, with B stored as zero-padded tiles (`PackedB`) |
| `mixgemm.attention` | small kernels for attention steps (Q @ Kᵀ and softmax @ V), including paged variants |
| `mixgemm.bf16` | bfloat16 ⇄ float32 bit conversions, masked loads and stores |
| `mixgemm.epilogue` | SiLU, GELU, ReLU, bias and residual operations |
| `mixgemm.platform` | CPU feature flags and choice of optimization level |

## Usage

### float32 GEMM

```python
import numpy as np
from mixgemm import sgemm

a = np.random.rand(4, 8).astype(np.float32)     # M x K
b = np.random.rand(8, 5).astype(np.float32)     # K x N

c = sgemm.sgemm(a, b, alpha=1.0, beta=0.0)      # c=None starts from zeros
```

With `trans_a=True`, `a` is stored K × M. With `trans_b=True`, `b` is stored N × K.
If you pass an existing `c`, it must be M × N, and it is scaled by `beta`.
`small_sgemm(a, b)` is plain `a @ b`.

### Packing B once, computing many times

```python
packed = sgemm.pack_b(b, trans_b=False)         # contiguous K x N
out = sgemm.compute(a, packed, None, alpha=1.0, beta=0.0)
bias = np.zeros(5, dtype=np.float32)
out = sgemm.compute_biasadd_relu(a, packed, None, bias)
```

`sgemm` and `hgemm_f16` both provide the same family of fused epilogues:

- `compute_silu`, `compute_gelu`: apply the activation to the result
- `compute_biasadd`, `compute_biasadd_relu`: add a per-column bias, optionally followed by ReLU
- `compute_residential`: add the bias and a residual matrix
- `compute_resext`: add the bias and `gamma * res`
- `compute_resmul`: multiply element-wise by a residual matrix

In `hgemm_f16`, the bias may be `None` wherever it appears. In `sgemm`, only
`compute_resext` accepts a `None` bias.

### Half-precision B in tiles

```python
from mixgemm import hgemm_f16

b16 = np.random.rand(8, 5).astype(np.float16)
packed = hgemm_f16.pack_b(b16)                  # 8 x 8 tiles; pack_b_block for other sizes
packed.get(2, 3)                                # element B[2, 3]
out = hgemm_f16.compute(a, packed, None)
out = hgemm_f16.hgemm(a, b16)                   # packs and computes in one call
```

When `beta` is zero, `hgemm_f16.compute` does not read `c`.

### bfloat16 conversions

bfloat16 values are carried as `uint16` bit patterns. When narrowing, a bias
of 0x7FFF is added to the float32 bits before they are truncated.

```python
from mixgemm import bf16

bits = bf16.from_float32(np.array([1.0, -2.5], dtype=np.float32))
values = bf16.to_float32(bits)
lanes = bf16.masked_load(bits, 0b01)            # lane 1 becomes 0.0
merged = bf16.masked_store(bits, np.array([3.0, 4.0], dtype=np.float32), 0b10)
```

### Attention helpers

```python
from mixgemm import attention

q = bf16.from_float32(np.random.rand(64).astype(np.float32))        # one row
keys = bf16.from_float32(np.random.rand(10, 64).astype(np.float32)) # N x K
scores = attention.small_sgemm_bf16bf16f32(q, keys, trans_b=True)   # float32, 1 x N
```

`small_sgemm_f32bf16bf16` multiplies float32 weights by bfloat16 values and
returns bfloat16 bits. `small_sgemm_f32f16bf16` takes float16 B and computes
`alpha * A @ op(B) + beta * C` with a bfloat16 C.

The paged variants read B from a flat buffer that is split into blocks of
`block_size` columns:

```python
attention.small_sgemm_bf16bf16f32_paged(
    q, buffer, n, ldb, block_indices, block_stride, block_size, trans_b=True)
```

`block_indices[i]` names the physical block that holds logical block `i`.
Each physical block starts `block_stride` elements into the buffer after the
one before it. Within a block, rows are `ldb` elements apart. A has to be a
single row.

### Platform

```python
from mixgemm import platform

features = platform.detect_cpu_features()       # reads /proc/cpuinfo, or pass its text
level = platform.best_optimization_level(features)
platform.is_optimization_level_supported(platform.OptimizationLevel.AVX2, features)
```

Detection parses the `flags` line of a cpuinfo listing. If there is no such
listing, as on systems other than Linux, every feature is reported as absent
and the level is `GENERIC`. `CPUFeatures.from_flags` builds the features from a
list of flag names.

## What this package does not do

- It has no integer or other quantized weight formats. B is always float32,
  float16 or bfloat16.
- It uses no threads and has no hand-tuned kernels. All arithmetic goes
  through NumPy, and the detected optimization level is only reported.
- It provides no command-line tool. It is a library only.