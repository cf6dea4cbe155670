from enum import Enum
from typing import Tuple

from .errors import consistency_error
from .intrin import intrin, param
from .tags import category
from .typemap import UNIT, VOID_POINTER, is_array, lookup


class bucket(Enum):
    constructing = 1
    reading = 2
    writing = 3
    effectful = 4
    pure = 5


def array_params(in_: intrin) -> Tuple[param, ...]:
    return tuple(p for p in in_.params if is_array(p.type))


def has_array_params(in_: intrin) -> bool:
    return any(is_array(p.type) for p in in_.params)


def has_void_pointers(in_: intrin) -> bool:
    return any(lookup(p.type) == VOID_POINTER for p in in_.params)


def has_array_return(in_: intrin) -> bool:
    return lookup(in_.ret).is_array


def has_void_pointer_return(in_: intrin) -> bool:
    return lookup(in_.ret) == VOID_POINTER


def has_array_types(in_: intrin) -> bool:
    # an untyped pointer return alone does not make the node generic
    return has_array_params(in_) or (has_array_return(in_) and not has_void_pointer_return(in_))


def generics(in_: intrin) -> Tuple[str, ...]:
    if not has_array_types(in_):
        return ()
    if has_void_pointers(in_):
        return ('void_type', 'cont', 'integral')
    return ('cont', 'integral')


def return_type(in_: intrin) -> str:
    t = lookup(in_.ret)
    return 'VoidPointer' if t == VOID_POINTER else str(t)


def classify(in_: intrin) -> bucket:
    if has_array_return(in_):
        return bucket.constructing
    if category.Load in in_.cats:
        return bucket.reading
    if has_array_params(in_):
        return bucket.writing
    if lookup(in_.ret) == UNIT:
        return bucket.effectful
    return bucket.pure


def def_name(in_: intrin) -> str:
    name = in_.name.upper().lstrip('_')
    if name == in_.name:
        raise consistency_error(f'method and node have the same name: {in_.name}')
    return name


def field_type(in_: intrin, p: param) -> str:
    if p in in_.offsets:
        return 'U'
    return str(lookup(p.type))
