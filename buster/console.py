"""
Tagged status lines. Written through tqdm so an active progress bar is redrawn
below them instead of being torn apart.
"""
import sys
from tqdm import tqdm


def log(tag: str, message: str, file=None):
    tqdm.write(f"[{tag}] {message}", file=file or sys.stderr)


def banner(lines, file=None):
    tqdm.write("\n".join(lines), file=file or sys.stderr)
