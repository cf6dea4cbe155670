from typing import Dict, Iterable, List

from .errors import unmapped_type


class typ:
    """Canonical type of a vendor type string; `elem` is set for pointers."""

    def __init__(self, name: str, elem: 'typ | None' = None):
        self._name = name
        self._elem = elem

    @property
    def name(self) -> str:
        return self._name

    @property
    def elem(self) -> 'typ | None':
        return self._elem

    @property
    def is_array(self) -> bool:
        return self._elem is not None

    def __eq__(self, other):
        return isinstance(other, typ) and (self._name, self._elem) == (other._name, other._elem)

    def __hash__(self):
        return hash((self._name, self._elem))

    def __str__(self):
        if self._elem is None:
            return self._name
        return f'A[{"T" if self._elem == ANY else self._elem.name}]'

    def __repr__(self):
        return f'typ({str(self)!r})'


def A(t: typ) -> typ:
    return typ('Array', t)


UNIT = typ('Unit')
ANY = typ('Any')
VOID_PP = typ('DoubleVoidPointer')

BYTE, SHORT, INT, LONG = typ('Byte'), typ('Short'), typ('Int'), typ('Long')
UBYTE, USHORT, UINT, ULONG = typ('UByte'), typ('UShort'), typ('UInt'), typ('ULong')
FLOAT, DOUBLE = typ('Float'), typ('Double')

M64 = typ('__m64')
M128, M128D, M128I = typ('__m128'), typ('__m128d'), typ('__m128i')
M256, M256D, M256I = typ('__m256'), typ('__m256d'), typ('__m256i')
M512, M512D, M512I = typ('__m512'), typ('__m512d'), typ('__m512i')

VECTOR_TYPES = (M64, M128, M128D, M128I, M256, M256D, M256I, M512, M512D, M512I)

VOID_POINTER = A(ANY)


type_mappings: Dict[str, typ] = {

    # ============= Enums =============

    '_MM_BROADCAST32_ENUM':     INT,
    '_MM_BROADCAST64_ENUM':     INT,
    '_MM_DOWNCONV_EPI32_ENUM':  INT,
    '_MM_DOWNCONV_EPI64_ENUM':  INT,
    '_MM_DOWNCONV_PD_ENUM':     INT,
    '_MM_DOWNCONV_PS_ENUM':     INT,
    '_MM_EXP_ADJ_ENUM':         INT,
    '_MM_MANTISSA_NORM_ENUM':   INT,
    '_MM_MANTISSA_SIGN_ENUM':   INT,
    '_MM_PERM_ENUM':            INT,
    '_MM_SWIZZLE_ENUM':         INT,
    '_MM_UPCONV_EPI32_ENUM':    INT,
    '_MM_UPCONV_EPI64_ENUM':    INT,
    '_MM_UPCONV_PD_ENUM':       INT,
    '_MM_UPCONV_PS_ENUM':       INT,
    'const _MM_UPCONV_PS_ENUM': INT,
    'const _MM_CMPINT_ENUM':    INT,

    # ============= Vector registers =============

    '__m64':           M64,
    '__m64*':          A(M64),
    '__m64 const*':    A(M64),

    '__m128':          M128,
    '__m128 *':        A(M128),
    '__m128 const *':  A(M128),

    '__m128d':         M128D,
    '__m128d *':       A(M128D),
    '__m128d const *': A(M128D),

    '__m128i':         M128I,
    '_m128i *':        A(M128I),
    '__m128i*':        A(M128I),
    '__m128i *':       A(M128I),
    'const __m128i*':  A(M128I),
    '__m128i const*':  A(M128I),

    '__m256':          M256,
    '__m256 *':        A(M256),

    '__m256d':         M256D,
    '__m256d *':       A(M256D),

    '__m256i':         M256I,
    '__m256i *':       A(M256I),
    '__m256i const *': A(M256I),
    '__m256i const*':  A(M256I),

    '__m512':          M512,
    '_m512':           M512,
    '__m512 *':        A(M512),
    '__m512d':         M512D,
    '__m512d *':       A(M512D),
    '__m512i':         M512I,
    '_m512i':          M512I,

    '__mmask8':        INT,
    '__mmask16':       INT,
    '_mmask16':        INT,
    '__mmask16 *':     A(INT),
    '__mmask32':       INT,
    '__mmask64':       LONG,

    # ============= Char / Byte =============

    'unsigned char':      UBYTE,

    'char':               BYTE,
    '__int8':             BYTE,
    'char const*':        A(BYTE),
    'char*':              A(BYTE),

    # ============= Short =============

    'unsigned short':     USHORT,
    'unsigned short*':    A(USHORT),
    'unsigned short *':   A(USHORT),

    'short':              SHORT,
    '__int16':            SHORT,

    # ============= Integer =============

    'unsigned':           UINT,
    'unsigned int':       UINT,
    'unsigned __int32':   UINT,
    'const unsigned int': UINT,
    'unsigned int*':      A(UINT),
    'unsigned int *':     A(UINT),
    'unsigned __int32*':  A(UINT),

    'int':                INT,
    'size_t':             INT,
    '__int32':            INT,
    'const int':          INT,
    'int*':               A(INT),
    '__int32*':           A(INT),
    'int const*':         A(INT),

    # ============= Long =============

    'unsigned long':      ULONG,
    'unsigned __int64':   ULONG,
    'unsigned __int64*':  A(ULONG),
    'unsigned __int64 *': A(ULONG),

    '__int64':            LONG,
    'long long':          LONG,
    '__int64*':           A(LONG),
    '__int64 const*':     A(LONG),

    # ============= Float =============

    'float':              FLOAT,
    'float*':             A(FLOAT),
    'float *':            A(FLOAT),
    'float const *':      A(FLOAT),
    'float const*':       A(FLOAT),
    'const float*':       A(FLOAT),

    # ============= Double =============

    'double':             DOUBLE,
    'double*':            A(DOUBLE),
    'double *':           A(DOUBLE),
    'double const*':      A(DOUBLE),
    'double const *':     A(DOUBLE),
    'const double*':      A(DOUBLE),

    # ============= Void =============

    'void':               UNIT,
    'void*':              VOID_POINTER,
    'void *':             VOID_POINTER,
    'void const*':        VOID_POINTER,
    'void const *':       VOID_POINTER,
    'const void *':       VOID_POINTER,
    'const void **':      VOID_PP,
}


def lookup(raw: str) -> typ:
    try:
        return type_mappings[raw]
    except KeyError:
        raise unmapped_type(raw) from None


def is_array(raw: str) -> bool:
    return lookup(raw).is_array


def is_void_pointer(raw: str) -> bool:
    return lookup(raw) == VOID_POINTER


def remap(raw: str) -> str:
    return str(lookup(raw))


def check_corpus(types: Iterable[str]) -> List[str]:
    return sorted(set(types) - type_mappings.keys())
