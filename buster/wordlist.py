"""
Wordlist loading and partitioning across workers.
"""
from pathlib import Path
from typing import Iterable, List

from .types import ConfigurationError


def filter_words(lines: Iterable[str]) -> List[str]:
    """Drop blank lines and '#' comments, keeping file order."""
    words = []
    for line in lines:
        w = line.strip()
        if not w or w.startswith("#"):
            continue
        words.append(w)
    return words


def load_wordlist(path: str) -> List[str]:
    p = Path(path)
    if not p.is_file():
        raise ConfigurationError(f"wordlist not found: {path}")
    try:
        text = p.read_text(encoding="utf-8", errors="ignore")
    except OSError as e:
        raise ConfigurationError(f"cannot read wordlist {path}: {e}")
    return filter_words(text.splitlines())


def partition(words: List[str], workers: int) -> List[List[str]]:
    """
    Split `words` into min(workers, len(words)) contiguous chunks.

    Chunk sizes differ by at most one; the first `len(words) % n` chunks get
    the extra word. Concatenating the chunks gives back `words`.
    """
    if workers < 1:
        raise ConfigurationError(f"worker count must be at least 1, got {workers}")
    if not words:
        raise ConfigurationError("wordlist is empty, nothing to do")
    n = min(workers, len(words))
    size, extra = divmod(len(words), n)
    chunks = []
    start = 0
    for i in range(n):
        end = start + size + (1 if i < extra else 0)
        chunks.append(list(words[start:end]))
        start = end
    return chunks
