"""CPU feature detection and selection of an optimization level.

Features are read from the ``flags`` line of a Linux ``/proc/cpuinfo``
listing, which reports the same CPUID bits the hardware query would.
"""

import dataclasses
import enum
from pathlib import Path

_CPUINFO_PATH = Path("/proc/cpuinfo")

# Field name -> flag names that report it.
_FLAG_ALIASES = {
    "avx512f": ("avx512f",),
    "avx512vl": ("avx512vl",),
    "avx512bw": ("avx512bw",),
    "avx512dq": ("avx512dq",),
    "avx2": ("avx2",),
    "avx": ("avx",),
    "sse42": ("sse4_2", "sse42"),
    "sse41": ("sse4_1", "sse41"),
    "sse3": ("pni", "sse3"),
    "sse2": ("sse2",),
    "sse": ("sse",),
    "fma": ("fma",),
    "aesni": ("aes", "aesni"),
    "amx_bf16": ("amx_bf16",),
    "amx_tile": ("amx_tile",),
    "amx_int8": ("amx_int8",),
}


class OptimizationLevel(enum.Enum):
    """Architecture-specific optimization levels, weakest first."""

    GENERIC = "generic"
    SSE2 = "sse2"
    SSE41 = "sse41"
    AVX = "avx"
    AVX2 = "avx2"
    AVX512 = "avx512"


@dataclasses.dataclass(frozen=True)
class CPUFeatures:
    """Instruction-set extensions available on a processor."""

    avx512f: bool = False
    avx512vl: bool = False
    avx512bw: bool = False
    avx512dq: bool = False
    avx2: bool = False
    avx: bool = False
    sse42: bool = False
    sse41: bool = False
    sse3: bool = False
    sse2: bool = False
    sse: bool = False
    fma: bool = False
    aesni: bool = False
    amx_bf16: bool = False
    amx_tile: bool = False
    amx_int8: bool = False

    @classmethod
    def from_flags(cls, flags):
        """Build from flag names such as those on a cpuinfo ``flags`` line."""
        if isinstance(flags, str):
            flags = flags.split()
        present = {flag.strip().lower() for flag in flags}
        return cls(**{
            field: any(alias in present for alias in aliases)
            for field, aliases in _FLAG_ALIASES.items()
        })

    def supports_avx512(self):
        return self.avx512f and self.avx512vl and self.avx512bw and self.avx512dq

    def supports_avx2(self):
        return self.avx2

    def supports_avx(self):
        return self.avx

    def supports_sse42(self):
        return self.sse42

    def supports_sse41(self):
        return self.sse41

    def supports_sse3(self):
        return self.sse3

    def supports_sse2(self):
        return self.sse2

    def supports_amx(self):
        return self.amx_tile and (self.amx_bf16 or self.amx_int8)


def _read_cpuinfo():
    try:
        return _CPUINFO_PATH.read_text(encoding="utf-8", errors="replace")
    except OSError:
        return ""


def detect_cpu_features(cpuinfo=None):
    """Parse cpuinfo text (read from the system when None) into CPUFeatures."""
    text = _read_cpuinfo() if cpuinfo is None else cpuinfo
    for line in text.splitlines():
        key, sep, value = line.partition(":")
        if sep and key.strip().lower() == "flags":
            return CPUFeatures.from_flags(value.split())
    return CPUFeatures()


_CHECKS = {
    OptimizationLevel.GENERIC: lambda f: True,
    OptimizationLevel.SSE2: CPUFeatures.supports_sse2,
    OptimizationLevel.SSE41: CPUFeatures.supports_sse41,
    OptimizationLevel.AVX: CPUFeatures.supports_avx,
    OptimizationLevel.AVX2: CPUFeatures.supports_avx2,
    OptimizationLevel.AVX512: CPUFeatures.supports_avx512,
}


def best_optimization_level(features=None):
    """Strongest optimization level the features allow."""
    if features is None:
        features = detect_cpu_features()
    for level in reversed(list(OptimizationLevel)):
        if _CHECKS[level](features):
            return level
    return OptimizationLevel.GENERIC


def is_optimization_level_supported(level, features=None):
    """Whether ``level`` can run on a processor with ``features``."""
    if features is None:
        features = detect_cpu_features()
    check = _CHECKS.get(level)
    return bool(check(features)) if check is not None else False