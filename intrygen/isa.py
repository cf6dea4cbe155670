from pathlib import Path
from typing import FrozenSet, Iterable, List, NamedTuple, Sequence, Tuple

from .codegen import (gen_cgen_umbrella, gen_cgen_unit, gen_umbrella,
                      gen_unit, module_name, stats)
from .intrin import intrin
from .utils import chunk, print_

ISAS = (
    'MMX',
    'SSE', 'SSE2', 'SSE3', 'SSSE3', 'SSE41', 'SSE42',
    'AVX', 'AVX2',
    'AVX512_KNC', 'AVX512', 'FMA', 'KNC', 'SVML',
    'Other',
)

PER_UNIT = 175

# AVX512 and KNC also pull in the shared AVX512_KNC unit when it was generated
KNC_EXT = 'AVX512_KNC'
_knc_hosts = ('AVX512', 'KNC')


class unit(NamedTuple):
    name: str
    intrinsics: Tuple[intrin, ...]


def take(tech: str, intrinsics: Iterable[intrin], seen: FrozenSet[str]) -> Tuple[List[intrin], FrozenSet[str]]:
    """Intrinsics of `tech` whose names were not emitted yet, in input order.

    Returns them together with `seen` extended by their names.
    """
    group, names = [], set(seen)
    for in_ in intrinsics:
        if in_.tech == tech and in_.name not in names:
            names.add(in_.name)
            group.append(in_)
    return group, frozenset(names)


def partition(tech: str, group: Sequence[intrin], per_unit: int = PER_UNIT) -> List[unit]:
    """One unit for small groups, otherwise `<tech>0<i>` sub-units of `per_unit` each."""
    if per_unit < 1:
        raise ValueError(f'per_unit must be positive, got {per_unit}')
    if len(group) < per_unit:
        return [unit(tech, tuple(group))]
    return [unit(f'{tech}0{i}', tuple(c)) for i, c in enumerate(chunk(group, per_unit))]


def umbrella_parts(tech: str, subs: Sequence[unit], out: Path) -> List[str]:
    parts = [s.name for s in subs]
    if tech in _knc_hosts and (out / f'{module_name(KNC_EXT)}.py').exists():
        parts.append(KNC_EXT)
    return parts


def _write(path: Path, text: str):
    with open(path, 'w', encoding='utf-8') as f:
        f.write(text)


def create_isa(tech: str, group: Sequence[intrin], out: Path, per_unit: int = PER_UNIT) -> str:
    units = partition(tech, group, per_unit)
    if len(units) == 1 and units[0].name == tech:
        _write(out / f'{module_name(tech)}.py', gen_unit(tech, group))
        _write(out / f'cgen_{module_name(tech)}.py', gen_cgen_unit(tech, group))
        return stats(tech, group)

    report = [f'{tech} statistics:\n\n\nNumber of {tech} intrinsics: {len(group)}\n']
    for u in units:
        _write(out / f'{module_name(u.name)}.py', gen_unit(u.name, u.intrinsics))
        _write(out / f'cgen_{module_name(u.name)}.py', gen_cgen_unit(u.name, u.intrinsics))
        report.append(stats(u.name, u.intrinsics, tech))
    parts = umbrella_parts(tech, units, out)
    _write(out / f'{module_name(tech)}.py', gen_umbrella(tech, parts))
    _write(out / f'cgen_{module_name(tech)}.py', gen_cgen_umbrella(tech, parts))
    return ''.join(report)


def generate_all(intrinsics: Sequence[intrin], out: Path, stats_dir: Path | None = None,
                 isas: Sequence[str] = ISAS, per_unit: int = PER_UNIT) -> FrozenSet[str]:
    out.mkdir(parents=True, exist_ok=True)
    if stats_dir is not None:
        stats_dir.mkdir(parents=True, exist_ok=True)
    seen: FrozenSet[str] = frozenset()
    for tech in isas:
        group, seen = take(tech, intrinsics, seen)
        print_(f'generating {tech} ({len(group)} intrinsics)...')
        report = create_isa(tech, group, out, per_unit)
        if stats_dir is not None:
            _write(stats_dir / f'{tech}.txt', report)
    init = out / '__init__.py'
    if not init.exists():
        _write(init, '# Generated by intrygen. Do not edit by hand.\n')
    return seen
