import pytest

from mixgemm.platform import (
    CPUFeatures,
    OptimizationLevel,
    best_optimization_level,
    detect_cpu_features,
    is_optimization_level_supported,
)

AVX512_FLAGS = ["sse", "sse2", "pni", "sse4_1", "sse4_2", "avx", "avx2", "fma",
                "avx512f", "avx512vl", "avx512bw", "avx512dq"]


def test_from_flags_maps_linux_names():
    features = CPUFeatures.from_flags(["pni", "sse4_1", "sse4_2", "aes"])
    assert features.sse3 and features.sse41 and features.sse42 and features.aesni
    assert not features.avx


def test_from_flags_accepts_string():
    features = CPUFeatures.from_flags("sse2 avx2")
    assert features.sse2 and features.avx2
    assert not features.sse


def test_avx512_needs_all_four_subsets():
    partial = CPUFeatures.from_flags(["avx512f", "avx512vl", "avx512bw"])
    assert not partial.supports_avx512()
    assert CPUFeatures.from_flags(AVX512_FLAGS).supports_avx512()


def test_amx_needs_tile_and_a_data_type():
    assert not CPUFeatures.from_flags(["amx_tile"]).supports_amx()
    assert not CPUFeatures.from_flags(["amx_bf16", "amx_int8"]).supports_amx()
    assert CPUFeatures.from_flags(["amx_tile", "amx_int8"]).supports_amx()


@pytest.mark.parametrize("flags, level", [
    ([], OptimizationLevel.GENERIC),
    (["sse2"], OptimizationLevel.SSE2),
    (["sse2", "sse4_1"], OptimizationLevel.SSE41),
    (["sse2", "avx"], OptimizationLevel.AVX),
    (["avx", "avx2"], OptimizationLevel.AVX2),
    (AVX512_FLAGS, OptimizationLevel.AVX512),
])
def test_best_level(flags, level):
    assert best_optimization_level(CPUFeatures.from_flags(flags)) is level


def test_best_level_is_supported():
    features = CPUFeatures.from_flags(["sse2", "sse4_1", "avx"])
    best = best_optimization_level(features)
    assert is_optimization_level_supported(best, features)
    assert not is_optimization_level_supported(OptimizationLevel.AVX2, features)


def test_generic_always_supported():
    assert is_optimization_level_supported(OptimizationLevel.GENERIC, CPUFeatures())


def test_unknown_level_unsupported():
    assert is_optimization_level_supported("avx9000", CPUFeatures()) is False


def test_detect_from_cpuinfo_text():
    text = (
        "processor\t: 0\n"
        "model name\t: Example CPU\n"
        "flags\t\t: fpu sse sse2 pni avx avx2 fma\n"
        "\n"
    )
    features = detect_cpu_features(text)
    assert features.avx2 and features.fma and features.sse3
    assert best_optimization_level(features) is OptimizationLevel.AVX2


def test_detect_without_flags_line():
    assert detect_cpu_features("processor : 0\n") == CPUFeatures()