#!/usr/bin/env python3
"""
hostprobe — probe many hosts for a reachable http(s) scheme
===========================================================

Reads hosts (or URLs) one per line and prints the first URL that answers.
With match patterns, prints only URLs whose body matches, followed by the
extracted text.

Usage:
    cat hosts.txt | python main.py [options]

Examples:
    cat hosts.txt | python main.py
    cat hosts.txt | python main.py -t 100 -T 5000
    python main.py -l hosts.txt -m '<title>(.*?)</title>'
    python main.py -l hosts.txt -f patterns.txt --strategy gate
"""

import argparse
import sys
from pathlib import Path

# ── Path fix so the packages import when run as a script ─────────────────────
sys.path.insert(0, str(Path(__file__).parent))

from probing.config import DEFAULT_CONCURRENCY, DEFAULT_TIMEOUT_MS, DEFAULT_USER_AGENT, ProbeConfig, load_patterns
from probing.errors import InputReadError, ProbeError
from probing.prober import HostProber
from probing.reporter import ResultSink
import probing.reporter as reporter

from schedulers.worker_pool.scheduler import WorkerPoolScheduler
from schedulers.gated_spawn.scheduler import GatedSpawnScheduler

# Map CLI name → scheduler class
SCHEDULERS = {
    "pool": WorkerPoolScheduler,
    "gate": GatedSpawnScheduler,
}


# ── CLI ───────────────────────────────────────────────────────────────────────

def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="hostprobe",
        description="Probe many hosts for a reachable http(s) URL",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    p.add_argument(
        "-l",
        "--list",
        default=None,
        help="File with one host per line (default: stdin)",
    )

    opt = p.add_argument_group("Optimizations")
    opt.add_argument(
        "-T",
        "--timeout",
        type=int,
        default=DEFAULT_TIMEOUT_MS,
        help=f"Timeout per request in milliseconds (default: {DEFAULT_TIMEOUT_MS})",
    )
    opt.add_argument(
        "--strategy",
        choices=list(SCHEDULERS.keys()),
        default="pool",
        help="Scheduling strategy: worker pool over a queue, or permit-gated tasks",
    )
    opt.add_argument(
        "--user-agent",
        default=DEFAULT_USER_AGENT,
        help=f"User-Agent header (default: {DEFAULT_USER_AGENT})",
    )

    rate = p.add_argument_group("Rate-Limit")
    rate.add_argument(
        "-t",
        "--tasks",
        type=int,
        default=DEFAULT_CONCURRENCY,
        help=f"Number of concurrent probes (default: {DEFAULT_CONCURRENCY})",
    )

    match = p.add_argument_group("Matchers")
    match.add_argument(
        "-m",
        "--match",
        action="append",
        default=[],
        metavar="REGEX",
        help="Only keep hosts whose body matches REGEX (repeatable); "
             "the first capture group, or the whole match, is printed",
    )
    match.add_argument(
        "-f",
        "--match-file",
        default=None,
        help="File with one regex per line",
    )

    out = p.add_argument_group("Output")
    verbosity = out.add_mutually_exclusive_group()
    verbosity.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show every candidate attempt on stderr",
    )
    verbosity.add_argument(
        "-s",
        "--silent",
        action="store_true",
        help="Print results only",
    )
    return p


def read_hosts(stream):
    """Yield raw lines from ``stream``; read failures abort the run."""
    try:
        for line in stream:
            yield line.rstrip("\r\n")
    except (OSError, UnicodeDecodeError) as exc:
        raise InputReadError(f"Cannot read input: {exc}") from exc


def build_config(args) -> ProbeConfig:
    patterns = list(args.match)
    if args.match_file:
        patterns += load_patterns(args.match_file)

    return ProbeConfig.build(
        timeout_ms=args.timeout,
        concurrency=args.tasks,
        patterns=patterns,
        user_agent=args.user_agent,
        strategy=args.strategy,
    )


# ── Main ──────────────────────────────────────────────────────────────────────

def main(argv=None):
    parser = build_parser()
    args   = parser.parse_args(argv)

    reporter.configure(verbose=args.verbose, silent=args.silent)

    try:
        config = build_config(args)
    except ValueError as exc:
        parser.error(str(exc))
    except ProbeError as exc:
        reporter.error(exc.message)
        sys.exit(1)

    reporter.banner("hostprobe", "http toolkit for probing many hosts")
    SchedulerClass = SCHEDULERS[config.strategy]
    reporter.info(f"Strategy : {args.strategy}, {SchedulerClass.description.lower()} ({config.concurrency} concurrent)")
    reporter.info(f"Timeout  : {config.timeout_ms} ms")
    if config.has_matchers:
        reporter.info(f"Matchers : {len(config.patterns)} pattern(s)")

    scheduler = SchedulerClass(config, HostProber(config), ResultSink(sys.stdout))

    try:
        if args.list:
            try:
                source = open(args.list, encoding="utf-8")
            except OSError as exc:
                raise InputReadError(f"Cannot open host list {args.list}: {exc}") from exc
            with source:
                run = scheduler.run(read_hosts(source))
        else:
            run = scheduler.run(read_hosts(sys.stdin))
    except KeyboardInterrupt:
        reporter.warning("Interrupted by user.")
        sys.exit(130)
    except ProbeError as exc:
        reporter.error(exc.message)
        sys.exit(1)

    reporter.summary(run, matched=config.has_matchers)


if __name__ == "__main__":
    main()
