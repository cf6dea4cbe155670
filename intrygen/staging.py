from io import StringIO
from typing import (Any, Callable, Iterable, Mapping, Optional,
                    Protocol, TextIO, Tuple)

from .errors import consistency_error


class exp:
    pass


class const(exp):
    def __init__(self, value):
        self._value = value

    @property
    def value(self):
        return self._value

    def __eq__(self, other):
        return isinstance(other, const) and type(self._value) is type(other._value) \
            and self._value == other._value

    def __hash__(self):
        return hash((const, self._value))

    def __repr__(self):
        return f'const({self._value!r})'


class sym(exp):
    def __init__(self, id: int, tpe: str = 'Unit'):
        self._id = id
        self._tpe = tpe

    @property
    def id(self) -> int:
        return self._id

    @property
    def tpe(self) -> str:
        return self._tpe

    def __eq__(self, other):
        return isinstance(other, sym) and self._id == other._id

    def __hash__(self):
        return hash((sym, self._id))

    def __repr__(self):
        return f'sym({self._id})'


transformer = Callable[[exp], exp]


class node_type:

    def __init__(self, name: str, fields: Iterable[Tuple[str, str]], generics: Iterable[str] = (),
                 category: Iterable = (), kinds: Iterable = (), performance: Optional[Mapping] = None,
                 header: str = ''):
        self._name = name
        self._fields = tuple(fields)
        self._generics = tuple(generics)
        self._category = frozenset(category)
        self._kinds = frozenset(kinds)
        self._performance = dict(performance or {})
        self._header = header

    @property
    def name(self) -> str:
        return self._name

    @property
    def fields(self) -> Tuple[Tuple[str, str], ...]:
        return self._fields

    @property
    def generics(self) -> Tuple[str, ...]:
        return self._generics

    @property
    def category(self) -> frozenset:
        return self._category

    @property
    def kinds(self) -> frozenset:
        return self._kinds

    @property
    def performance(self) -> Mapping:
        return self._performance

    @property
    def header(self) -> str:
        return self._header

    def __call__(self, *args: Any, **generic: Any) -> 'node':
        if len(args) != len(self._fields):
            raise consistency_error(f'{self._name} takes {len(self._fields)} arguments, got {len(args)}')
        if set(generic) != set(self._generics):
            raise consistency_error(f'{self._name} expects generics {self._generics}, got {tuple(generic)}')
        return node(self, args, generic)

    def __repr__(self):
        return f'node_type({self._name!r})'


class node(exp):
    def __init__(self, typ: node_type, args: Tuple[Any, ...], generic: Mapping[str, Any]):
        self._typ = typ
        self._args = tuple(args)
        self._generic = dict(generic)

    @property
    def typ(self) -> node_type:
        return self._typ

    @property
    def tag(self) -> str:
        return self._typ.name

    @property
    def args(self) -> Tuple[Any, ...]:
        return self._args

    @property
    def generic(self) -> Mapping[str, Any]:
        return self._generic

    @property
    def header(self) -> str:
        return self._typ.header

    @property
    def category(self) -> frozenset:
        return self._typ.category

    @property
    def kinds(self) -> frozenset:
        return self._typ.kinds

    @property
    def performance(self) -> Mapping:
        return self._typ.performance

    @property
    def cont(self) -> 'container':
        return self._get('cont')

    @property
    def integral(self):
        return self._get('integral')

    @property
    def void_type(self):
        return self._get('void_type')

    def _get(self, k: str):
        try:
            return self._generic[k]
        except KeyError:
            raise AttributeError(f'{self.tag} has no generic {k!r}') from None

    def __getitem__(self, field: str):
        for (name, _), a in zip(self._typ.fields, self._args):
            if name == field:
                return a
        raise KeyError(field)

    def __eq__(self, other):
        return isinstance(other, node) and self._typ is other._typ \
            and self._args == other._args and self._generic == other._generic

    def __hash__(self):
        return hash((self._typ.name, self._args))

    def __repr__(self):
        return f'{self.tag}({", ".join(map(repr, self._args))})'


class summary:

    def __init__(self, simple: bool = False, mutable: bool = False, writes: Iterable[exp] = ()):
        self._simple = simple
        self._mutable = mutable
        self._writes = tuple(writes)

    @property
    def simple(self) -> bool:
        return self._simple

    @property
    def mutable(self) -> bool:
        return self._mutable

    @property
    def writes(self) -> Tuple[exp, ...]:
        return self._writes

    def __eq__(self, other):
        return isinstance(other, summary) \
            and (self._simple, self._mutable, self._writes) == (other._simple, other._mutable, other._writes)

    def __hash__(self):
        return hash((self._simple, self._mutable, self._writes))

    def __repr__(self):
        return f'summary(simple={self._simple}, mutable={self._mutable}, writes={self._writes})'


class reflect(exp):
    """A node with effect summary `u` depending on the effects `es`."""

    def __init__(self, node: node, u: summary, es: Iterable[exp] = ()):
        self._node = node
        self._u = u
        self._es = tuple(es)

    @property
    def node(self) -> node:
        return self._node

    @property
    def u(self) -> summary:
        return self._u

    @property
    def es(self) -> Tuple[exp, ...]:
        return self._es

    def __eq__(self, other):
        return isinstance(other, reflect) and (self._node, self._u, self._es) == (other._node, other._u, other._es)

    def __hash__(self):
        return hash((self._node, self._u, self._es))

    def __repr__(self):
        return f'reflect({self._node!r}, {self._u!r}, {self._es!r})'


def to_atom(d: node) -> exp:
    return d


def reflect_effect(d: node) -> reflect:
    return reflect(d, summary(simple=True))


def reflect_mutable(d: node) -> reflect:
    return reflect(d, summary(mutable=True))


def reflect_write(d: node, *written: exp) -> reflect:
    return reflect(d, summary(writes=written))


def reflect_mirrored(r: reflect) -> reflect:
    return r


def map_over(f: transformer, u: summary) -> summary:
    return summary(u.simple, u.mutable, map(f, u.writes))


class container(Protocol):
    """What array and pointer arguments are read from, written to and mirrored through."""

    def read(self, d: node, *arrays: exp) -> exp:
        ...

    def write(self, d: node, *arrays: exp) -> exp:
        ...

    def apply(self, x: exp, f: transformer) -> exp:
        ...


class _array_container:
    def read(self, d: node, *arrays: exp) -> exp:
        return to_atom(d)

    def write(self, d: node, *arrays: exp) -> exp:
        return reflect_write(d, *arrays)

    def apply(self, x: exp, f: transformer) -> exp:
        return f(x)

    def __repr__(self):
        return 'array_container'


array_container: container = _array_container()


mirror_rule = Tuple[Callable[[node, transformer], exp], Callable[[node, transformer], node]]


def mirror_with(rules: Mapping[str, mirror_rule], e: exp, f: transformer) -> exp:
    """Rebuilds `e` with every argument passed through `f`.

    A plain node is rebuilt by calling its dispatch operation again; a
    reflected node is rebuilt directly and wrapped with its effect summary
    and dependencies mirrored as well.
    """
    if isinstance(e, reflect):
        if e.node.tag not in rules:
            raise LookupError(f'no mirroring rule for {e.node.tag}')
        _, rebuild = rules[e.node.tag]
        return reflect_mirrored(reflect(rebuild(e.node, f), map_over(f, e.u), map(f, e.es)))
    if isinstance(e, node) and e.tag in rules:
        apply, _ = rules[e.tag]
        return apply(e, f)
    raise LookupError(f'no mirroring rule for {e!r}')


_c_types = {
    'Unit': 'void',
    'Boolean': 'bool',
    'Byte': 'int8_t',
    'UByte': 'uint8_t',
    'Short': 'int16_t',
    'UShort': 'uint16_t',
    'Char': 'uint16_t',
    'Int': 'int32_t',
    'UInt': 'uint32_t',
    'Long': 'int64_t',
    'ULong': 'uint64_t',
    'Float': 'float',
    'Double': 'double',
    'VoidPointer': 'void*',
    'A[T]': 'void*',
    'DoubleVoidPointer': 'void**',
}


emitter = Callable[['cgen', sym, node], None]


class cgen:

    def __init__(self, stream: TextIO | None = None):
        self.headers: set = set()
        self.stream = stream if stream is not None else StringIO()

    def remap(self, tpe: str) -> str:
        if tpe in _c_types:
            return _c_types[tpe]
        if tpe.startswith('A[') and tpe.endswith(']'):
            return self.remap(tpe[2:-1]) + '*'
        return tpe

    def quote(self, x) -> str:
        if isinstance(x, sym):
            return f'x{x.id}'
        if isinstance(x, const):
            v = x.value
            if isinstance(v, bool):
                return 'true' if v else 'false'
            if isinstance(v, float):
                return f'{v!r}f' if x.value == x.value else 'NAN'
            if isinstance(v, str):
                return '"' + v.replace('\\', '\\\\').replace('"', '\\"') + '"'
            return str(v)
        raise TypeError(f'can not quote {x!r}')

    def plus_offset(self, offset) -> str:
        # only a literal zero is dropped; a symbol is always added
        if isinstance(offset, const) and not isinstance(offset.value, bool) and offset.value == 0:
            return ''
        return ' + ' + self.quote(offset)

    def emit_stmt(self, s: str):
        self.stream.write(s + '\n')

    def emit_val_def(self, s: sym, rhs: str):
        self.emit_stmt(f'{self.remap(s.tpe)} {self.quote(s)} = {rhs};')

    def emit_with(self, emitters: Mapping[str, emitter], s: sym, rhs: exp):
        d = rhs.node if isinstance(rhs, reflect) else rhs
        if not isinstance(d, node) or d.tag not in emitters:
            raise LookupError(f'no emission rule for {rhs!r}')
        emitters[d.tag](self, s, d)

    def source(self) -> str:
        if not isinstance(self.stream, StringIO):
            raise TypeError('source is only available for in-memory streams')
        incs = ''.join(f'#include <{h}>\n' for h in sorted(self.headers))
        return incs + self.stream.getvalue()


