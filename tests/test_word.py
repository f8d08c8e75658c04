import pytest
from hypothesis import given
from hypothesis import strategies as st

from zkvalida.field import P
from zkvalida.word import MEMORY_CELL_BYTES, Word

u32 = st.integers(min_value=0, max_value=(1 << 32) - 1)


@given(u32)
def test_u32_round_trip(value):
    assert Word.from_u32(value).to_u32() == value


def test_from_u32_is_big_endian():
    assert Word.from_u32(0x01020304).cells == (0x01, 0x02, 0x03, 0x04)


def test_default_word_is_zero():
    assert Word().to_u32() == 0
    assert len(Word()) == MEMORY_CELL_BYTES


def test_from_u32_rejects_out_of_range():
    with pytest.raises(ValueError):
        Word.from_u32(1 << 32)
    with pytest.raises(ValueError):
        Word.from_u32(-1)


def test_word_requires_four_cells():
    with pytest.raises(ValueError):
        Word((1, 2, 3))


def test_to_u32_rejects_non_byte_cells():
    with pytest.raises(ValueError):
        Word((0, 0, 0, 256)).to_u32()


def test_from_byte_fills_last_cell():
    assert Word.from_byte(7).cells == (0, 0, 0, 7)


def test_indexing_and_iteration():
    word = Word((9, 8, 7, 6))
    assert word[0] == 9
    assert word[3] == 6
    assert list(word) == [9, 8, 7, 6]


def test_transform_applies_to_every_cell():
    assert Word((1, 2, 3, 4)).transform(lambda x: x * 10) == Word((10, 20, 30, 40))


@given(u32)
def test_reduce_matches_u32_value(value):
    assert Word.from_u32(value).reduce() == value % P


@given(u32, u32)
def test_addition_wraps(a, b):
    total = Word.from_u32(a) + Word.from_u32(b)
    assert total.to_u32() == (a + b) % (1 << 32)


def test_addition_overflow_wraps_to_zero():
    assert Word.from_u32(0xFFFFFFFF) + Word.from_u32(1) == Word()


@given(u32, u32)
def test_subtraction_undoes_addition(a, b):
    low, high = sorted((a, b))
    difference = Word.from_u32(high) - Word.from_u32(low)
    assert difference + Word.from_u32(low) == Word.from_u32(high)


def test_subtraction_underflow_raises():
    with pytest.raises(OverflowError):
        Word.from_u32(1) - Word.from_u32(2)


def test_multiplication_overflow_raises():
    with pytest.raises(OverflowError):
        Word.from_u32(1 << 16) * Word.from_u32(1 << 16)


@given(st.integers(min_value=0, max_value=0xFFFF), st.integers(min_value=1, max_value=0xFFFF))
def test_division_inverts_multiplication(a, b):
    product = Word.from_u32(a) * Word.from_u32(b)
    assert product / Word.from_u32(b) == Word.from_u32(a)


def test_division_by_zero_raises():
    with pytest.raises(ZeroDivisionError):
        Word.from_u32(5) / Word()


@given(st.integers(min_value=0, max_value=31), st.integers(min_value=0, max_value=0xFFFF))
def test_shift_round_trip(shift, seed):
    value = seed & ((1 << (32 - shift)) - 1)
    word = Word.from_u32(value)
    amount = Word.from_u32(shift)
    assert (word << amount) >> amount == word


def test_shift_of_32_bits_raises():
    with pytest.raises(OverflowError):
        Word.from_u32(1) << Word.from_u32(32)
    with pytest.raises(OverflowError):
        Word.from_u32(1) >> Word.from_u32(32)


@given(u32, u32)
def test_bitwise_identities(a, b):
    wa, wb = Word.from_u32(a), Word.from_u32(b)
    assert wa ^ wa == Word()
    assert (wa ^ wb) ^ wb == wa
    assert wa & wa == wa
    assert wa | Word() == wa
    assert (wa & wb) | (wa ^ wb) == wa | wb


@given(u32, u32)
def test_ordering_matches_integer_ordering(a, b):
    wa, wb = Word.from_u32(a), Word.from_u32(b)
    assert (wa < wb) == (a < b)
    assert (wa == wb) == (a == b)