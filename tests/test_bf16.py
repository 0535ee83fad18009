import numpy as np
import pytest

from mixgemm import bf16


def test_known_patterns_widen():
    out = bf16.to_float32(np.array([0x3F80, 0xC000, 0x0000], dtype=np.uint16))
    assert out.dtype == np.float32
    assert out.tolist() == [1.0, -2.0, 0.0]


def test_round_trip_all_patterns():
    bits = np.arange(0x10000, dtype=np.uint32)
    back = bf16.from_float32(bf16.to_float32(bits))
    assert np.array_equal(back, bits.astype(np.uint16))


def test_tie_rounds_down_and_above_tie_rounds_up():
    tie = np.array([0x3F808000], dtype=np.uint32).view(np.float32)
    above = np.array([0x3F808001], dtype=np.uint32).view(np.float32)
    assert int(bf16.from_float32(tie)[0]) == 0x3F80
    assert int(bf16.from_float32(above)[0]) == 0x3F81


def test_scalar_shape_preserved():
    out = bf16.to_float32(0x3F80)
    assert out.shape == ()
    assert float(out) == 1.0


def test_out_of_range_bits_rejected():
    with pytest.raises(ValueError):
        bf16.to_float32([0x10000])


def test_float_bits_rejected():
    with pytest.raises(TypeError):
        bf16.to_float32([1.5])


def test_masked_load_zeroes_unselected_lanes():
    bits = np.full(16, 0x3F80, dtype=np.uint16)
    out = bf16.masked_load(bits, 0b101)
    assert out[0] == 1.0 and out[2] == 1.0
    assert np.count_nonzero(out) == 2


def test_masked_load_full_mask_matches_plain_load():
    bits = np.arange(0x3F00, 0x3F10, dtype=np.uint16)
    assert np.array_equal(bf16.masked_load(bits, 0xFFFF), bf16.to_float32(bits))


def test_masked_store_merges_lanes():
    existing = np.zeros(16, dtype=np.uint16)
    values = np.full(16, 1.0, dtype=np.float32)
    out = bf16.masked_store(existing, values, 0b11)
    assert out[:2].tolist() == [0x3F80, 0x3F80]
    assert not out[2:].any()


def test_masked_store_does_not_mutate_input():
    existing = np.zeros(4, dtype=np.uint16)
    bf16.masked_store(existing, np.ones(4, dtype=np.float32), 0xF)
    assert not existing.any()


def test_masked_store_length_mismatch():
    with pytest.raises(ValueError):
        bf16.masked_store(np.zeros(4, dtype=np.uint16), np.ones(3), 1)


def test_negative_mask_rejected():
    with pytest.raises(ValueError):
        bf16.masked_load(np.zeros(4, dtype=np.uint16), -1)