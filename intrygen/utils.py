import os
import sys
from itertools import islice
from pathlib import Path
from sys import platform
from typing import Iterable, Iterator, List, TypeVar

_T = TypeVar('_T')


def print_(s: str, end: str = '\n'):
    sys.stdout.write(s + end)
    sys.stdout.flush()


def chunk(it: Iterable[_T], n: int) -> Iterator[List[_T]]:
    # unlike zip_longest, the last chunk is not padded
    it = iter(it)
    while c := list(islice(it, n)):
        yield c


def user_data_dir(file_name: str) -> Path:
    # https://github.com/SwagLyrics/SwagLyrics-For-Spotify/blob/master/swaglyrics/__init__.py
    if platform.startswith("win"):
        os_path = os.getenv("LOCALAPPDATA")
    elif platform.startswith("darwin"):
        os_path = "~/Library/Application Support"
    else:
        os_path = os.getenv('XDG_DATA_HOME') or f'{os.getenv("HOME")}/.local/share'
    path = Path(os_path).expanduser() / "intrygen"
    path.mkdir(parents=True, exist_ok=True)
    return path / file_name
