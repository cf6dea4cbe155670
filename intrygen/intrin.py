from types import MappingProxyType
from typing import Iterable, Mapping, NamedTuple, Optional, Tuple

from .tags import arch, category, kind


class perf(NamedTuple):
    """Latency and throughput in cycles; None if unmeasured or variable."""
    latency: Optional[float]
    throughput: Optional[float]


class param:
    def __init__(self, name: str, type: str):
        self._name = name
        self._type = type

    @property
    def name(self) -> str:
        return self._name

    @property
    def type(self) -> str:
        return self._type

    def __eq__(self, other):
        return isinstance(other, param) and self._name == other._name

    def __hash__(self):
        return hash(self._name)

    def __repr__(self):
        return f'param({self._name!r}, {self._type!r})'


class intrin:
    def __init__(self, name: str, tech: str, cpuid: Iterable[str], ret: str,
                 kinds: Iterable[kind], cats: Iterable[category],
                 perf: Mapping[arch, perf], params: Iterable[param],
                 offsets: Iterable[param], descr: str, op: Iterable[str],
                 header: str, instr: str = ''):
        self._name = name
        self._tech = tech
        self._cpuid = tuple(cpuid)
        self._ret = ret
        self._kinds = frozenset(kinds)
        self._cats = frozenset(cats)
        self._perf = dict(perf)
        self._params = tuple(params)
        self._offsets = tuple(offsets)
        self._descr = descr
        self._op = tuple(op)
        self._header = header
        self._instr = instr

    @property
    def name(self) -> str:
        return self._name

    @property
    def tech(self) -> str:
        return self._tech

    @property
    def cpuid(self) -> Tuple[str, ...]:
        return self._cpuid

    @property
    def ret(self) -> str:
        return self._ret

    @property
    def kinds(self) -> frozenset:
        return self._kinds

    @property
    def cats(self) -> frozenset:
        return self._cats

    @property
    def perf(self) -> Mapping[arch, perf]:
        """mapping of microarchitecture to <latency, throughput> pair"""
        return MappingProxyType(self._perf)

    @property
    def params(self) -> Tuple[param, ...]:
        return self._params

    @property
    def offsets(self) -> Tuple[param, ...]:
        return self._offsets

    @property
    def all_params(self) -> Tuple[param, ...]:
        return self._params + self._offsets

    @property
    def descr(self) -> str:
        return self._descr

    @property
    def op(self) -> Tuple[str, ...]:
        return self._op

    @property
    def header(self) -> str:
        return self._header

    @property
    def instr(self) -> str:
        return self._instr

    def with_perf(self, extra: Mapping[arch, perf]) -> 'intrin':
        return intrin(self._name, self._tech, self._cpuid, self._ret,
                      self._kinds, self._cats, {**self._perf, **extra},
                      self._params, self._offsets, self._descr, self._op,
                      self._header, self._instr)

    def __repr__(self):
        return f'intrin({self._name!r}, {self._tech!r})'
