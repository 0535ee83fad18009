"""Mixed-precision GEMM on NumPy arrays: float32, float16 and bfloat16 kernels with fused epilogues and attention helpers."""

__version__ = "1.0.0"

__all__ = [
    "attention",
    "bf16",
    "epilogue",
    "hgemm_f16",
    "platform",
    "sgemm",
]