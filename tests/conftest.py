"""
Shared fixtures: a small intrinsics database and helpers to build records,
generate units into a temporary package and import them.
"""
import importlib
import sys
import uuid
import xml.etree.ElementTree as et
from pathlib import Path

import pytest

from intrygen.data import parse_intrinsic, parse_intrinsics
from intrygen.isa import generate_all


def record(name, tech='SSE2', ret='__m128i', params=(), cats=('Arithmetic',), kinds=('Integer',),
           perfs=(), header='emmintrin.h', descr=None, instr=None):
    """XML text of one <intrinsic> record."""
    ps = ''.join(f'<parameter varname="{n}" type="{t}"/>' for n, t in params)
    cs = ''.join(f'<category>{c}</category>' for c in cats)
    ks = ''.join(f'<type>{k}</type>' for k in kinds)
    pf = ''.join(f'<perfdata arch="{a}" lat="{l}" tpt="{t}"/>' for a, l, t in perfs)
    ds = f'<description>{descr}</description>' if descr is not None else ''
    ins = f'<instruction name="{instr}" form="xmm, xmm"/>' if instr else ''
    rt = f' rettype="{ret}"' if ret is not None else ''
    return (f'<intrinsic tech="{tech}"{rt} name="{name}">{ks}<CPUID>{tech}</CPUID>{cs}'
            f'{ps}{ds}<operation>dst := a</operation>{ins}{pf}<header>{header}</header></intrinsic>')


def make(name, **kw):
    return parse_intrinsic(et.fromstring(record(name, **kw)))


DATABASE = '<intrinsics_list version="3.3.16" date="01/30/2017">' + ''.join([
    record('_mm_add_epi32', params=[('a', '__m128i'), ('b', '__m128i')],
           perfs=[('Haswell', '1', '0.5'), ('Nehalem', 'Varies', '')],
           descr='Add packed 32-bit integers in "a" and "b", and store the results in "dst".',
           instr='paddd'),
    record('_mm256_load_ps', tech='AVX', ret='__m256', params=[('mem_addr', 'float const *')],
           cats=['Load'], kinds=['Floating Point'], header='immintrin.h', instr='vmovaps'),
    record('_mm_store_ps', tech='SSE', ret='void', params=[('mem_addr', 'float*'), ('a', '__m128')],
           cats=['Store'], kinds=['Floating Point'], header='xmmintrin.h', instr='movaps'),
    record('_mm_sfence', tech='SSE', ret='void', params=[('', 'void')],
           cats=['General Support'], header='xmmintrin.h', instr='sfence'),
    record('_mm_malloc', tech='SSE', ret='void*', params=[('size', 'size_t'), ('align', 'size_t')],
           cats=['General Support'], header='xmmintrin.h'),
    record('_mm_clflush', ret='void', params=[('p', 'void const*')],
           cats=['General Support'], instr='clflush'),
    record('_mm_add_epi32', tech='AVX', params=[('x', '__m128i'), ('y', '__m128i')]),
    record('_mm_loadu_si128', params=[('mem_addr', '__m128i const*')], cats=['Load'], instr='movdqu'),
    record('_MM_TRANSPOSE4_PS', tech='SSE', ret=None,
           params=[('row0', '__m128'), ('row1', '__m128'), ('row2', '__m128'), ('row3', '__m128')],
           cats=['Swizzle'], kinds=['Floating Point'], header='xmmintrin.h'),
    record('_mm_extract_ps', tech='SSE4.1', ret='int', params=[('a', '__m128'), ('imm8', 'const int')],
           cats=['Swizzle'], kinds=['Floating Point'], header='smmintrin.h', instr='extractps'),
]) + '</intrinsics_list>'


@pytest.fixture
def database_xml(tmp_path) -> Path:
    path = tmp_path / 'data.xml'
    path.write_text(DATABASE)
    return path


@pytest.fixture
def intrinsics():
    return parse_intrinsics(et.fromstring(DATABASE))


@pytest.fixture(autouse=True)
def data_home(tmp_path, monkeypatch):
    home = tmp_path / 'xdg'
    monkeypatch.setenv('XDG_DATA_HOME', str(home))
    return home


@pytest.fixture
def generate(tmp_path, monkeypatch):
    """Generates units into a fresh importable package; returns an importer."""
    monkeypatch.syspath_prepend(str(tmp_path))
    pkgs = []

    def run(intrinsics, isas, per_unit=175):
        pkg = 'gen_' + uuid.uuid4().hex[:8]
        out = tmp_path / pkg
        generate_all(intrinsics, out, tmp_path / 'stats', isas, per_unit)
        importlib.invalidate_caches()
        pkgs.append(pkg)
        return out, lambda mod: importlib.import_module(f'{pkg}.{mod}')

    yield run
    for pkg in pkgs:
        for m in [m for m in sys.modules if m == pkg or m.startswith(pkg + '.')]:
            del sys.modules[m]
