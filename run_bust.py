"""
Main runner and CLI for buster, a threaded web content brute-forcer.

Usage:
    python run_bust.py -u <target-url> -w <wordlist> [-t <threads>] [-c 200,301,302] [-o results.txt]

"""
import argparse
import sys
import threading

import requests

from buster import console
from buster.config import DEFAULT_CODES, DEFAULT_OUTPUT, BustConfig, build_config, env_defaults
from buster.coordinator import Coordinator
from buster.progress import ProgressTracker
from buster.sink import ResultSink
from buster.types import BustInterrupted, BustSummary, ConfigurationError
from buster.wordlist import load_wordlist

EXIT_CONFIG = 2
EXIT_ABORTED = 130


def parse_args(argv=None):
    p = argparse.ArgumentParser(prog="buster", description="buster - brute-force directories and files on a web server")
    p.add_argument("-u", "--url", help="Target URL (include http/https)")
    p.add_argument("-w", "--wordlist", help="File containing the words to probe")
    p.add_argument("-t", "--threads", type=int, help="Threads to use including the coordinator (default: half the CPU threads)")
    p.add_argument("-c", "--codes", help="Comma separated status codes to report (default: %s)" % ",".join(str(c) for c in sorted(DEFAULT_CODES)))
    p.add_argument("-o", "--output", default=DEFAULT_OUTPUT, help="Results file, '-' for stdout (default: %(default)s)")
    p.add_argument("--timeout", type=float, help="Per-request timeout in seconds (default: none)")
    p.add_argument("--user-agent", help="User-Agent header to send")
    p.add_argument("--no-progress", action="store_true", help="Disable the progress bar")
    p.add_argument("-v", "--verbose", action="store_true", help="Report found and skipped words as they arrive")
    return p, p.parse_args(argv)


def config_from_args(args) -> BustConfig:
    env = env_defaults()
    return build_config(
        url=args.url,
        wordlist=args.wordlist,
        threads=args.threads if args.threads is not None else env["threads"],
        codes=args.codes,
        output=args.output,
        timeout=args.timeout if args.timeout is not None else env["timeout"],
        user_agent=args.user_agent or env["user_agent"],
    )


def run(config: BustConfig, words, show_bar=True, verbose=False, cancel=None, session_factory=requests.Session) -> BustSummary:
    sink = ResultSink.open(config.output, config.url, config.codes)
    coordinator = Coordinator(
        config.url,
        words,
        config.workers,
        sink,
        tracker=ProgressTracker(),
        cancel=cancel,
        session_factory=session_factory,
        timeout=config.timeout,
        headers={"User-Agent": config.user_agent},
        show_bar=show_bar,
        verbose=verbose,
    )
    return coordinator.run()


def main(argv=None) -> int:
    parser, args = parse_args(argv)
    try:
        config = config_from_args(args)
        words = load_wordlist(config.wordlist)
        if not words:
            raise ConfigurationError(f"wordlist {config.wordlist} has no usable entries")
    except ConfigurationError as e:
        parser.print_usage(sys.stderr)
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_CONFIG

    console.banner([
        "        URL: " + config.url,
        "   Wordlist: " + config.wordlist,
        "    Threads: " + str(config.threads),
        " HTTP Codes: " + "[" + ", ".join(str(c) for c in sorted(config.codes)) + "]",
        "     Output: " + config.output,
    ])

    cancel = threading.Event()
    show_bar = not args.no_progress and config.output != "-"
    try:
        summary = run(config, words, show_bar=show_bar, verbose=args.verbose, cancel=cancel)
    except (KeyboardInterrupt, BustInterrupted):
        cancel.set()
        print("\nAborted.", file=sys.stderr)
        return EXIT_ABORTED

    print("Finished.", file=sys.stderr)
    console.log("Summary", f"{summary.completed}/{summary.total} probed, {summary.matched} matched, {summary.skipped} skipped")
    return 0


if __name__ == "__main__":
    sys.exit(main())
