import pytest

from intrygen.isa import ISAS, KNC_EXT, create_isa, generate_all, partition, take

from conftest import make


def batch(n, tech='AVX512', prefix='_mm512_op'):
    return [make(f'{prefix}{i}', tech=tech, params=[('a', '__m512i')], ret='__m512i')
            for i in range(n)]


def test_take_drops_names_seen_in_earlier_groups(intrinsics):
    sse2, seen = take('SSE2', intrinsics, frozenset())
    assert [i.name for i in sse2] == ['_mm_add_epi32', '_mm_clflush', '_mm_loadu_si128']
    avx, seen2 = take('AVX', intrinsics, seen)
    assert [i.name for i in avx] == ['_mm256_load_ps']
    assert seen2 == seen | {'_mm256_load_ps'}
    # the accumulator is threaded, not shared
    assert '_mm256_load_ps' not in seen


def test_take_keeps_first_duplicate_within_group():
    a = make('_mm_dup', params=[('a', 'int')])
    b = make('_mm_dup', params=[('b', 'int')])
    group, _ = take('SSE2', [a, b], frozenset())
    assert group == [a]


def test_group_order_decides_which_duplicate_wins(intrinsics):
    avx, seen = take('AVX', intrinsics, frozenset())
    sse2, _ = take('SSE2', intrinsics, seen)
    assert '_mm_add_epi32' in [i.name for i in avx]
    assert '_mm_add_epi32' not in [i.name for i in sse2]


def test_partition_sizes():
    units = partition('AVX512', batch(3 * 10 + 5), 10)
    assert [u.name for u in units] == ['AVX51200', 'AVX51201', 'AVX51202', 'AVX51203']
    assert [len(u.intrinsics) for u in units] == [10, 10, 10, 5]
    flat = [i for u in units for i in u.intrinsics]
    assert [i.name for i in flat] == [f'_mm512_op{i}' for i in range(35)]


def test_partition_below_and_at_cap():
    assert [u.name for u in partition('SSE', batch(9, 'SSE'), 10)] == ['SSE']
    assert [u.name for u in partition('SSE', batch(10, 'SSE'), 10)] == ['SSE00']
    assert [u.name for u in partition('SSE', [], 10)] == ['SSE']
    with pytest.raises(ValueError):
        partition('SSE', [], 0)


def test_complex_isa_writes_sub_units_and_umbrella(tmp_path):
    report = create_isa('AVX512', batch(7), tmp_path, 3)
    names = sorted(p.name for p in tmp_path.iterdir())
    assert names == sorted([
        'avx51200.py', 'avx51201.py', 'avx51202.py', 'avx512.py',
        'cgen_avx51200.py', 'cgen_avx51201.py', 'cgen_avx51202.py', 'cgen_avx512.py',
    ])
    umbrella = (tmp_path / 'avx512.py').read_text()
    assert 'from . import avx51200, avx51201, avx51202\n' in umbrella
    assert 'avx512_knc' not in umbrella
    assert report.startswith('AVX512 statistics:\n\n\nNumber of AVX512 intrinsics: 7\n')
    assert report.count('Number of intrinsics with pointer arguments: 0') == 3


def test_knc_extension_is_composed_when_present(tmp_path):
    create_isa(KNC_EXT, batch(1, KNC_EXT, '_mm512_knc'), tmp_path, 3)
    create_isa('AVX512', batch(4), tmp_path, 3)
    create_isa('FMA', batch(4, 'FMA', '_mm_fma'), tmp_path, 3)
    assert 'from . import avx51200, avx51201, avx512_knc\n' in (tmp_path / 'avx512.py').read_text()
    assert '**cgen_avx512_knc.EMITTERS' in (tmp_path / 'cgen_avx512.py').read_text()
    assert 'avx512_knc' not in (tmp_path / 'fma.py').read_text()


def test_generate_all_writes_units_and_reports(tmp_path, intrinsics):
    out, stats = tmp_path / 'out', tmp_path / 'stats'
    seen = generate_all(intrinsics, out, stats)
    assert len(seen) == 9
    for isa in ISAS:
        assert (out / f'{isa.lower()}.py').exists()
        assert (out / f'cgen_{isa.lower()}.py').exists()
        assert (stats / f'{isa}.txt').exists()
    assert (out / '__init__.py').exists()
    sse2 = (stats / 'SSE2.txt').read_text()
    assert 'Number of SSE2 intrinsics: 3' in sse2
    assert 'Number of intrinsics with pointer arguments: 1\n_mm_clflush\n' in sse2
    assert 'Number of AVX intrinsics: 1' in (stats / 'AVX.txt').read_text()


def test_generated_package_imports_through_umbrella(generate, intrinsics):
    many = batch(5)
    out, imp = generate([*intrinsics, *many], ['SSE2', 'AVX512'], per_unit=2)
    avx512, cgen_avx512 = imp('avx512'), imp('cgen_avx512')
    assert len(avx512.NODES) == 5
    assert avx512.NODES.keys() == avx512.MIRRORS.keys() == cgen_avx512.EMITTERS.keys()
    assert hasattr(avx512, '_mm512_op4')
    assert sorted(p.name for p in out.glob('avx512*.py')) == [
        'avx512.py', 'avx51200.py', 'avx51201.py', 'avx51202.py']
