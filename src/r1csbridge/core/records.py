from __future__ import annotations
import json
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterable, Iterator, Optional, Tuple, Union

from .errors import MalformedHeader, MalformedRecord, TruncatedFile

logger = logging.getLogger(__name__)

Record = Tuple[int, Any]

def _numbered(stream: Iterable[Union[bytes, str]]) -> Iterator[Tuple[int, str]]:
    """Yield (1-based line number, text) for every non-blank line."""
    for line_no, raw in enumerate(stream, start=1):
        if isinstance(raw, bytes):
            try:
                raw = raw.decode("utf-8")
            except UnicodeDecodeError as e:
                raise MalformedRecord(line_no, f"not valid UTF-8 ({e.reason})") from e
        if raw.strip():
            yield line_no, raw

def _decode(line_no: int, text: str) -> Any:
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise MalformedRecord(line_no, e.msg) from e

def iter_records(lines: Iterator[Tuple[int, str]]) -> Iterator[Record]:
    for line_no, text in lines:
        yield line_no, _decode(line_no, text)

def read_records(stream, header: bool = True) -> Tuple[Optional[dict], Iterator[Record]]:
    """
    Split a newline-delimited JSON stream into its header object and a lazy
    iterator over the remaining (line_no, value) payload rows.

    The header is decoded eagerly so an empty or headerless stream fails here;
    payload lines are decoded on demand and the first bad one aborts the load.
    With header=False every line is a payload row and the header is None.
    """
    lines = _numbered(stream)
    if not header:
        return None, iter_records(lines)
    first = next(lines, None)
    if first is None:
        raise TruncatedFile("Header line not found")
    line_no, text = first
    try:
        obj = json.loads(text)
    except json.JSONDecodeError as e:
        raise MalformedHeader(f"line {line_no}: {e.msg}") from e
    if not isinstance(obj, dict):
        raise MalformedHeader(f"line {line_no}: header must be a JSON object")
    return obj, iter_records(lines)

@contextmanager
def open_records(path: Union[str, Path]):
    p = Path(path)
    logger.debug("Opening %s", p)
    with p.open("rb") as f:
        yield f
