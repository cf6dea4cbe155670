import pytest

from intrygen import typemap
from intrygen.errors import unmapped_type
from intrygen.typemap import (A, ANY, FLOAT, INT, M128I, UNIT, VOID_POINTER, VOID_PP,
                              check_corpus, is_array, is_void_pointer, lookup, remap)


def test_vector_and_scalar_types():
    assert lookup('__m128i') == M128I
    assert lookup('_m128i *') == A(M128I)
    assert lookup('__mmask64') == typemap.LONG
    assert lookup('_MM_PERM_ENUM') == INT
    assert lookup('void') == UNIT


def test_pointer_spellings_map_to_arrays():
    for raw in ('float*', 'float *', 'float const *', 'float const*', 'const float*'):
        assert lookup(raw) == A(FLOAT)
        assert is_array(raw)
    assert not is_array('float')


def test_void_pointers():
    assert lookup('void const*') == VOID_POINTER
    assert is_void_pointer('const void *')
    assert not is_void_pointer('char*')
    # pointer to void pointer is its own type, not an array
    assert lookup('const void **') == VOID_PP
    assert not is_array('const void **')


def test_remap_renders_canonical_names():
    assert remap('__m256d') == '__m256d'
    assert remap('unsigned __int64') == 'ULong'
    assert remap('double const*') == 'A[Double]'
    assert remap('void*') == 'A[T]'
    assert str(A(ANY)) == 'A[T]'


def test_unmapped_type_is_fatal():
    with pytest.raises(unmapped_type, match="'__m128h'"):
        lookup('__m128h')
    with pytest.raises(ValueError):
        is_array('__bfloat16')


def test_check_corpus_reports_all_missing():
    assert check_corpus(['int', '__m128', 'float*']) == []
    assert check_corpus(['__m128h', 'int', '__bfloat16', '__m128h']) == ['__bfloat16', '__m128h']


def test_every_table_entry_resolves():
    for raw in typemap.type_mappings:
        remap(raw)
