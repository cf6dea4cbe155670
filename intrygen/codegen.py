import textwrap
from typing import Iterable, List, Sequence

from . import __version__
from .classify import (array_params, bucket, classify, def_name, field_type,
                       generics, has_void_pointer_return, return_type)
from .errors import consistency_error
from .intrin import intrin, param
from .typemap import is_array

_LF = '\n'

PREAMBLE = f'''\
# Generated by intrygen {__version__} from the Intel intrinsics database.
# Do not edit by hand.
'''


def module_name(unit: str) -> str:
    return unit.lower()


def _fn(in_: intrin, kind: str) -> str:
    return f'_{kind}_{in_.name.lstrip("_")}'


def _comment(s: str, width: int = 78) -> str:
    lines = []
    for para in s.splitlines():
        lines += textwrap.wrap(para, width) or ['']
    return _LF.join(f'# {ln}'.rstrip() for ln in lines)


def _unpack(in_: intrin, var: str = 'e') -> str:
    ps = in_.all_params
    if not ps:
        return ''
    names = ps[0].name + ',' if len(ps) == 1 else ', '.join(p.name for p in ps)
    return f'    {names} = {var}.args\n'


def _perf(in_: intrin) -> str:
    if not in_.perf:
        return '{}'
    body = ''.join(f'        arch.{a.name}: perf({p.latency!r}, {p.throughput!r}),\n'
                   for a, p in in_.perf.items())
    return '{\n' + body + '    }'


def _op_keywords(in_: intrin) -> List[str]:
    kws = list(generics(in_))
    if classify(in_) in (bucket.reading, bucket.writing) and 'cont' not in kws:
        kws.append('cont')
    return kws


_defaults = {
    'void_type': 'object',
    'cont': 'array_container',
    'integral': 'int',
}


def _check(in_: intrin):
    names = [p.name for p in in_.all_params]
    if len(set(names)) != len(names):
        raise consistency_error(f'{in_.name} has clashing parameter names: {names}')


def gen_node(in_: intrin) -> str:
    _check(in_)
    sig = ', '.join(f'{p.name}: {p.type}' for p in in_.params)
    fields = ''.join(f'({p.name!r}, {field_type(in_, p)!r}), ' for p in in_.all_params)
    cats = ''.join(f'category.{c.name}, ' for c in sorted(in_.cats, key=lambda c: c.name))
    kinds = ''.join(f'kind.{k.name}, ' for k in sorted(in_.kinds, key=lambda k: k.name))
    return (
        f'{_comment(in_.descr)}\n'
        + (f'{_comment(sig)}\n' if sig else '')
        + f'{def_name(in_)} = node_type(\n'
        f'    {def_name(in_)!r},\n'
        f'    ({fields.rstrip()}),\n'
        f'    generics={generics(in_)!r},\n'
        f'    category=({cats.rstrip()}),\n'
        f'    kinds=({kinds.rstrip()}),\n'
        f'    performance={_perf(in_)},\n'
        f'    header={in_.header!r},\n'
        ')\n'
    )


def _construct(in_: intrin, args: Sequence[str], gen: Sequence[str]) -> str:
    return f'{def_name(in_)}({", ".join([*args, *gen])})'


def gen_op(in_: intrin) -> str:
    kws = _op_keywords(in_)
    ps = [p.name for p in in_.all_params]
    if kws:
        ps += ['*'] + [f'{k}={_defaults[k]}' for k in kws]
    d = _construct(in_, [p.name for p in in_.all_params], [f'{k}={k}' for k in generics(in_)])
    arrays = ''.join(f', {p.name}' for p in array_params(in_))
    body = {
        bucket.constructing: f'reflect_mutable({d})',
        bucket.reading: f'cont.read({d}{arrays})',
        bucket.writing: f'cont.write({d}{arrays})',
        bucket.effectful: f'reflect_effect({d})',
        bucket.pure: d,
    }[classify(in_)]
    return (
        f'def {in_.name}({", ".join(ps)}):\n'
        f'    return {body}\n'
    )


def _mirrored_args(in_: intrin) -> List[str]:
    arrays = set(array_params(in_))
    return [f'e.cont.apply({p.name}, f)' if p in arrays else f'f({p.name})'
            for p in in_.all_params]


def gen_mirror(in_: intrin) -> str:
    gen = [f'{k}=e.{k}' for k in generics(in_)]
    args = _mirrored_args(in_)
    return (
        f'def {_fn(in_, "mirror")}(e, f):\n'
        f'{_unpack(in_)}'
        f'    return {in_.name}({", ".join([*args, *gen])})\n'
        '\n\n'
        f'def {_fn(in_, "rebuild")}(e, f):\n'
        f'{_unpack(in_)}'
        f'    return {_construct(in_, args, gen)}\n'
    )


def _c_arg(p: param) -> str:
    if not is_array(p.type):
        return f'{{gen.quote({p.name})}}'
    return f'({p.type}) ({{gen.quote({p.name})}}{{gen.plus_offset({p.name}Offset)}})'


def gen_emit(in_: intrin) -> str:
    call = f'{in_.name}({", ".join(map(_c_arg, in_.params))})'
    stmt = (f"gen.emit_stmt(f'{call};')" if return_type(in_) == 'Unit'
            else f"gen.emit_val_def(sym, f'{call}')")
    return (
        f'def {_fn(in_, "emit")}(gen, sym, e):\n'
        f'{_unpack(in_)}'
        '    gen.headers.add(e.header)\n'
        f'    {stmt}\n'
    )


def _names_list(names: Iterable[str]) -> str:
    return ''.join(f'    {n!r},\n' for n in names)


def _check_unit(unit: str, intrinsics: Sequence[intrin]):
    seen = {}
    for in_ in intrinsics:
        d = def_name(in_)
        if d in seen:
            raise consistency_error(f'{unit}: {in_.name} and {seen[d]} share the node name {d}')
        seen[d] = in_.name


def gen_unit(unit: str, intrinsics: Sequence[intrin]) -> str:
    _check_unit(unit, intrinsics)
    names = [n for in_ in intrinsics for n in (def_name(in_), in_.name)]
    nodes = ''.join(f'    {def_name(in_)!r}: {def_name(in_)},\n' for in_ in intrinsics)
    mirrors = ''.join(f'    {def_name(in_)!r}: ({_fn(in_, "mirror")}, {_fn(in_, "rebuild")}),\n'
                      for in_ in intrinsics)
    sections = [
        PREAMBLE
        + f'"""IR nodes, dispatch operations and mirroring rules for {unit}."""\n'
        'from intrygen.intrin import perf\n'
        'from intrygen.staging import (array_container, mirror_with, node_type,\n'
        '                              reflect_effect, reflect_mutable)\n'
        'from intrygen.tags import arch, category, kind\n'
        '\n'
        f'__all__ = [\n{_names_list(names)}]\n',
        *map(gen_node, intrinsics),
        *map(gen_op, intrinsics),
        *map(gen_mirror, intrinsics),
        f'NODES = {{\n{nodes}}}\n'
        '\n'
        f'MIRRORS = {{\n{mirrors}}}\n',
        'def mirror(e, f):\n'
        '    return mirror_with(MIRRORS, e, f)\n',
    ]
    return '\n\n'.join(sections)


def gen_cgen_unit(unit: str, intrinsics: Sequence[intrin]) -> str:
    _check_unit(unit, intrinsics)
    emitters = ''.join(f'    {def_name(in_)!r}: {_fn(in_, "emit")},\n' for in_ in intrinsics)
    sections = [
        PREAMBLE
        + f'"""C emission rules for {unit}."""\n'
        f'IR = {module_name(unit)!r}\n',
        *map(gen_emit, intrinsics),
        f'EMITTERS = {{\n{emitters}}}\n',
        'def emit_node(gen, sym, rhs):\n'
        '    return gen.emit_with(EMITTERS, sym, rhs)\n',
    ]
    return '\n\n'.join(sections)


def gen_umbrella(unit: str, subs: Sequence[str]) -> str:
    mods = [module_name(s) for s in subs]
    return '\n\n'.join([
        PREAMBLE
        + f'"""{unit}, composed of {", ".join(subs)}."""\n'
        'from intrygen.staging import mirror_with\n'
        '\n'
        f'from . import {", ".join(mods)}\n'
        + ''.join(f'from .{m} import *\n' for m in mods)
        + '\n'
        f'__all__ = [{", ".join(f"*{m}.__all__" for m in mods)}]\n'
        '\n'
        f'NODES = {{{", ".join(f"**{m}.NODES" for m in mods)}}}\n'
        '\n'
        f'MIRRORS = {{{", ".join(f"**{m}.MIRRORS" for m in mods)}}}\n',
        'def mirror(e, f):\n'
        '    return mirror_with(MIRRORS, e, f)\n',
    ])


def gen_cgen_umbrella(unit: str, subs: Sequence[str]) -> str:
    mods = [f'cgen_{module_name(s)}' for s in subs]
    return '\n\n'.join([
        PREAMBLE
        + f'"""C emission rules for {unit}, composed of {", ".join(subs)}."""\n'
        f'from . import {", ".join(mods)}\n'
        '\n'
        f'IR = {module_name(unit)!r}\n'
        '\n'
        f'EMITTERS = {{{", ".join(f"**{m}.EMITTERS" for m in mods)}}}\n',
        'def emit_node(gen, sym, rhs):\n'
        '    return gen.emit_with(EMITTERS, sym, rhs)\n',
    ])


def stats(unit: str, intrinsics: Sequence[intrin], parent: str = '') -> str:
    """Statistics report text; sub-units of `parent` leave out the heading and total."""
    lines = [f'{unit} statistics:', '', ''] if not parent else []
    for in_ in intrinsics:
        if (n := len(array_params(in_))) > 1:
            lines.append(f'Intrinsic {in_.name} has {n} pointer arguments')
        if has_void_pointer_return(in_):
            lines.append(f'Intrinsic {in_.name} has void return type')
    ptrs = [in_.name for in_ in intrinsics if classify(in_) is bucket.writing]
    if not parent:
        lines.append(f'Number of {unit} intrinsics: {len(intrinsics)}')
    lines.append(f'Number of intrinsics with pointer arguments: {len(ptrs)}')
    lines += ptrs
    return _LF.join(lines) + _LF
