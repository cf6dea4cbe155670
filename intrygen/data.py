import keyword
import os
import pickle
import re
import xml.etree.ElementTree as et
from contextlib import suppress
from io import BytesIO
from itertools import groupby
from statistics import fmean
from typing import Dict, Iterable, List, Optional
from urllib.request import urlopen
from zipfile import ZipFile, is_zipfile

import openpyxl

from .errors import schema_error, unmapped_type
from .intrin import intrin, param, perf
from .tags import arch, str2arch, str2category, str2kind
from .typemap import check_corpus, is_array
from .utils import print_, user_data_dir

NO_DESCRIPTION = 'No description available for this intrinsic'
INTEL_MEMBER = 'Intel Intrinsics Guide/files/data.js'
AMD_MEMBER = 'Zen4_Instruction_Latencies_version_1-00.xlsx'
AMD_SHEET = 'Zen4 instruction latencies'

_vdata = 0

# names the generated templates use for their own locals
_template_names = {'e', 'f', 'gen', 'sym', 'cont', 'integral', 'void_type'}
_renames = {
    'RoundKey': 'roundKey',
    'type': 'tpe',
    'val': 'value',
}


def sanitize_param_name(s: str) -> str:
    s = _renames.get(s, s)
    if keyword.iskeyword(s) or s in _template_names:
        return s + '_'
    return s


def _record(node: et.Element) -> str:
    return node.get('name') or et.tostring(node, encoding='unicode').strip()[:80]


def get_attr(node: et.Element, attr: str, record: et.Element | None = None) -> str:
    value = node.get(attr)
    if value is None:
        raise schema_error(f'can not find attr {attr} in {_record(record if record is not None else node)}')
    if not value.strip():
        raise schema_error(f'attr {attr} is empty in {_record(record if record is not None else node)}')
    return value


def _ret_type(node: et.Element) -> str:
    if node.get('name') == '_MM_TRANSPOSE4_PS':
        return 'void'
    if node.get('rettype') is None and (r := node.find('return')) is not None:
        return get_attr(r, 'type', node)
    return get_attr(node, 'rettype')


def _perf_value(txt: str | None, attr: str, node: et.Element) -> Optional[float]:
    if txt is None:
        return None
    txt = txt.strip()
    if txt in ('', 'Varies'):
        return None
    try:
        return float(txt)
    except ValueError:
        raise schema_error(f'attr {attr} is not a number ({txt!r}) in {_record(node)}') from None


def _tag(lookup, s: str, name: str):
    try:
        return lookup(s)
    except schema_error as e:
        raise schema_error(f'{e} in {name}') from None


def clean_tech(tech: str) -> str:
    return tech.replace('.', '').replace('-', '').replace('/', '_')


def parse_intrinsic(node: et.Element) -> intrin:
    name = get_attr(node, 'name')
    tech = clean_tech(get_attr(node, 'tech'))
    ret = _ret_type(node)
    cpuid = [c.text or '' for c in node.findall('CPUID')]
    kinds = [_tag(str2kind, t.text or '', name) for t in node.findall('type')]
    cats = [_tag(str2category, c.text or '', name) for c in node.findall('category')]
    if not kinds:
        raise schema_error(f'intrinsic type missing in {name}')
    if not cats:
        raise schema_error(f'category missing in {name}')

    params: Dict[str, param] = {}
    for p in node.findall('parameter'):
        ptype = get_attr(p, 'type', node)
        if ptype == 'void':
            continue
        pname = sanitize_param_name(get_attr(p, 'varname', node))
        params.setdefault(pname, param(pname, ptype))
    offsets = [param(p.name + 'Offset', 'int') for p in params.values() if is_array(p.type)]

    perfs = {}
    for pd in node.findall('perfdata'):
        a = _tag(str2arch, get_attr(pd, 'arch', node), name)
        lat = _perf_value(pd.get('lat'), 'lat', node)
        tpt = _perf_value(pd.get('tpt'), 'tpt', node)
        if lat is not None or tpt is not None:
            perfs[a] = perf(lat, tpt)

    descr = next((d.text for d in node.findall('description') if d.text and d.text.strip()),
                 NO_DESCRIPTION)
    headers = [h.text for h in node.findall('header') if h.text]
    if not headers:
        raise schema_error(f'can not find header in {name}')
    instr = node.find('instruction')
    return intrin(
        name, tech, cpuid, ret, kinds, cats, perfs,
        params.values(), offsets, descr.strip(),
        [o.text or '' for o in node.findall('operation')],
        headers[0].strip(),
        (instr.get('name') or '').lower() if instr is not None else '',
    )


def parse_intrinsics(root: et.Element) -> List[intrin]:
    nodes = list(root.iter('intrinsic'))
    users: Dict[str, List[str]] = {}
    for n in nodes:
        name = n.get('name') or '?'
        types = [p.get('type') for p in n.findall('parameter')]
        types += [n.get('rettype')] + [r.get('type') for r in n.findall('return')]
        for t in types:
            if t and name not in (us := users.setdefault(t, [])):
                us.append(name)
    if missing := check_corpus(users):
        raise unmapped_type(*missing, records=users)
    return list(map(parse_intrinsic, nodes))


def get_data_src(data_source: str, *files: str) -> list[bytes]:
    if os.path.isfile(data_source):
        print_(f'importing data from {data_source}...')
        with open(data_source, 'rb') as f:
            src = BytesIO(f.read())
    elif data_source.startswith('http'):
        print_(f'downloading data from {data_source}...')
        src = BytesIO(urlopen(data_source).read())
    else:
        raise ValueError('invalid data source, expected file or url')
    if not is_zipfile(src):
        return [src.getvalue()]
    with ZipFile(src) as f:
        if not set(files) <= set(f.namelist()):
            # an xlsx workbook is a zip archive itself
            return [src.getvalue()]
        return list(map(f.read, files))


def load_xml(data_source: str) -> et.Element:
    (raw,) = get_data_src(data_source, INTEL_MEMBER)
    if raw.lstrip().startswith(b'var data_js'):
        raw = raw.strip().removeprefix(b'var data_js = "').removesuffix(b'";')
        return et.fromstring(raw.decode('unicode_escape'))
    return et.fromstring(raw)


_prng = re.compile(r'([\d.]+)-([\d.]+)')


def gavg(xs: Iterable[str | float | int | None]) -> float | None:
    def map_(x: str | float | int | None) -> float | None:
        if x is None:
            return None
        with suppress(ValueError):
            return float(x)
        return (m := _prng.fullmatch(str(x).strip())) and (float(m[1]) + float(m[2])) / 2

    vs = [v for v in map(map_, xs) if v is not None]
    return fmean(vs) if vs else None


def read_zen4(amd_source: str) -> Dict[str, perf]:
    """Maps lower-case instruction mnemonics to their Zen4 performance."""
    (raw,) = get_data_src(amd_source, AMD_MEMBER)
    wb = openpyxl.open(BytesIO(raw), read_only=True)
    try:
        rs = iter(wb[AMD_SHEET].iter_rows(values_only=True))
        head = list(next(rs))
        ii, il, it = map(head.index, ('Instruction', 'Latency', 'Throughput'))

        def cell(r, i):
            return r[i] if i < len(r) else None

        rows = (r for r in rs if isinstance(cell(r, ii), str) and cell(r, ii).strip())
        res = {}
        for k, g in groupby(rows, lambda r: r[ii].strip().lower()):
            g = list(g)
            p = perf(gavg(cell(r, il) for r in g), gavg(cell(r, it) for r in g))
            if p != (None, None):
                res[k] = p
        return res
    finally:
        wb.close()


def merge_zen4(intrinsics: Iterable[intrin], amd_source: str) -> List[intrin]:
    z4 = read_zen4(amd_source)
    return [in_.with_perf({arch.Zen4: z4[in_.instr]}) if in_.instr in z4 else in_
            for in_ in intrinsics]


def get_data(intel_source: Optional[str], amd_source: Optional[str] = None) -> List[intrin]:
    path = user_data_dir('data')
    if os.path.exists(path) and not (intel_source or amd_source):
        with open(path, 'rb') as f:
            ver, dat = pickle.load(f)
            if ver == _vdata:
                return dat
    if not intel_source:
        raise ValueError('no data source given and no cached data found')
    root = load_xml(intel_source)
    print_('reading dat...')
    dat = parse_intrinsics(root)
    if amd_source:
        dat = merge_zen4(dat, amd_source)
    print_('writing to disk...')
    with open(path, 'wb') as f:
        pickle.dump((_vdata, dat), f)
    return dat
