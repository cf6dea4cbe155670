from enum import Enum
from typing import Dict

from .errors import schema_error


class category(Enum):
    ApplicationTargeted = 'Application-Targeted'
    Arithmetic = 'Arithmetic'
    BitManipulation = 'Bit Manipulation'
    Cast = 'Cast'
    Compare = 'Compare'
    Convert = 'Convert'
    Cryptography = 'Cryptography'
    ElementaryMath = 'Elementary Math Functions'
    GeneralSupport = 'General Support'
    Load = 'Load'
    Logical = 'Logical'
    Mask = 'Mask'
    Miscellaneous = 'Miscellaneous'
    Move = 'Move'
    OSTargeted = 'OS-Targeted'
    ProbabilityStatistics = 'Probability/Statistics'
    Random = 'Random'
    Set = 'Set'
    Shift = 'Shift'
    SpecialMath = 'Special Math Functions'
    Store = 'Store'
    StringCompare = 'String Compare'
    Swizzle = 'Swizzle'
    Trigonometry = 'Trigonometry'


class kind(Enum):
    FloatingPoint = 'Floating Point'
    Integer = 'Integer'
    Mask = 'Mask'


class arch(Enum):
    Westmere = 'Westmere'
    Nehalem = 'Nehalem'
    SandyBridge = 'Sandy Bridge'
    IvyBridge = 'Ivy Bridge'
    Haswell = 'Haswell'
    Broadwell = 'Broadwell'
    Skylake = 'Skylake'
    KnightsLanding = 'Knights Landing'
    Zen4 = 'Zen4'


_s2cat: Dict[str, category] = {c.value: c for c in category}
_s2kind: Dict[str, kind] = {k.value: k for k in kind}
_s2arch: Dict[str, arch] = {a.value: a for a in arch}


def str2category(s: str) -> category:
    try:
        return _s2cat[s.strip()]
    except KeyError:
        raise schema_error(f'category unknown: {s!r}') from None


def str2kind(s: str) -> kind:
    try:
        return _s2kind[s.strip()]
    except KeyError:
        raise schema_error(f'intrinsic type unknown: {s!r}') from None


def str2arch(s: str) -> arch:
    try:
        return _s2arch[s.strip()]
    except KeyError:
        raise schema_error(f'microarchitecture unknown: {s!r}') from None
