"""
Result sink: appends matching results line by line, flushing after each one so
partial results survive an abort.
"""
import sys
from pathlib import Path
from typing import FrozenSet, Optional, TextIO

from .types import ResultRecord


class ResultSink:
    def __init__(self, stream: TextIO, target: str, codes: FrozenSet[int], owns_stream: bool = True):
        self.stream = stream
        self.target = target
        self.codes = codes
        self.owns_stream = owns_stream
        self.matched = 0
        self.closed = False

    @classmethod
    def open(cls, path: str, target: str, codes: FrozenSet[int]) -> "ResultSink":
        """Open `path` for writing (truncating it). '-' means stdout."""
        if path == "-":
            return cls(sys.stdout, target, codes, owns_stream=False)
        p = Path(path)
        p.parent.mkdir(parents=True, exist_ok=True)
        return cls(p.open("w", encoding="utf-8"), target, codes)

    def record(self, status_code: Optional[int], word: str) -> Optional[ResultRecord]:
        if status_code is None or status_code not in self.codes:
            return None
        if self.closed:
            raise ValueError("record on closed sink")
        rec = ResultRecord(status_code, self.target + word)
        self.stream.write(f"{rec}\n")
        self.stream.flush()
        self.matched += 1
        return rec

    def close(self):
        if self.closed:
            return
        self.closed = True
        if self.owns_stream:
            self.stream.close()
        else:
            self.stream.flush()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
