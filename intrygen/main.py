import sys
from argparse import ArgumentParser
from pathlib import Path
from typing import List, Optional, Sequence

from .data import get_data
from .errors import consistency_error, schema_error
from .isa import ISAS, PER_UNIT, generate_all
from .utils import print_


def _parser() -> ArgumentParser:
    ap = ArgumentParser(prog='intrygen', description='Generate staged intrinsics bindings.')
    ap.add_argument('isas', type=str, nargs='*', metavar='ISA',
                    help=f'instruction sets to generate, in order (default: {" ".join(ISAS)})')
    ap.add_argument('--data-source', '-i', help='intel data source: data.xml, guide zip or url')
    ap.add_argument('--amd-source', '-a', help='amd zen4 latency workbook or zip')
    ap.add_argument('--out', '-o', type=Path, default=Path('intrinsics'),
                    help='output package directory')
    ap.add_argument('--stats', '-s', type=Path, default=Path('stats'),
                    help='statistics report directory')
    ap.add_argument('--per-unit', '-n', type=int, default=PER_UNIT,
                    help='maximum number of intrinsics per generated unit')
    return ap


def _select(names: Sequence[str]) -> List[str]:
    by_key = {k.upper(): k for k in ISAS}
    if bad := [n for n in names if n.upper() not in by_key]:
        raise ValueError(f'unknown ISAs given: {", ".join(bad)}')
    return [by_key[n.upper()] for n in names]


def main(argv: Optional[Sequence[str]] = None) -> int:
    ap = _parser()
    args = ap.parse_args(argv)
    try:
        isas = _select(args.isas) if args.isas else list(ISAS)
        if args.per_unit < 1:
            raise ValueError('--per-unit must be positive')
        dat = get_data(args.data_source, args.amd_source)
        seen = generate_all(dat, args.out, args.stats, isas, args.per_unit)
    except (schema_error, consistency_error) as e:
        print_(f'generation aborted: {e}')
        return 1
    except ValueError as e:
        ap.error(str(e))
    print_(f'generated {len(seen)} intrinsics into {args.out}')
    return 0


if __name__ == '__main__':
    sys.exit(main())
