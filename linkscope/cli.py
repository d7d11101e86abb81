"""Command-line interface for linkscope."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import List

from . import __version__
from .amp import resolve_amp_url
from .config import ResolverConfig
from .errors import InvalidPatternError, InvalidUrlError, ResolutionError
from .matching import MatchSet, normalize_url
from .network import RequestsNetwork
from .patterns import compile_domains, compile_patterns
from .resolver import RedirectResolver
from .shortlinks import is_short_url

logger = logging.getLogger(__name__)

EXIT_USAGE = 2


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="linkscope",
        description="Match URLs against match patterns and resolve redirect chains",
    )
    p.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable verbose logging",
    )
    p.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    sub = p.add_subparsers(dest="command", required=True)

    m = sub.add_parser("match", help="Test URLs against match patterns")
    m.add_argument("patterns", nargs="+", help="Match patterns (or domains with --domains)")
    m.add_argument(
        "-u", "--url", action="append", default=[], required=True,
        help="URL to test (can be repeated)",
    )
    _add_domain_options(m)

    r = sub.add_parser("regex", help="Print the compiled regular expression")
    r.add_argument("patterns", nargs="+", help="Match patterns (or domains with --domains)")
    _add_domain_options(r)

    n = sub.add_parser("normalize", help="Normalize URLs for comparison")
    n.add_argument("urls", nargs="+")

    a = sub.add_parser("amp", help="Decode publisher domains from AMP cache URLs")
    a.add_argument("urls", nargs="+")

    res = sub.add_parser("resolve", help="Follow redirect chains to their destination")
    res.add_argument("urls", nargs="+")
    res.add_argument(
        "--timeout", type=float, default=30.0,
        help="Deadline per redirect chain in seconds (default: 30)",
    )
    res.add_argument(
        "--request-timeout", type=int, default=10,
        help="HTTP request timeout in seconds (default: 10)",
    )
    res.add_argument(
        "--max-redirects", type=int, default=30,
        help="Maximum redirects per chain (default: 30)",
    )
    res.add_argument(
        "--get", action="store_true",
        help="Use GET instead of HEAD requests",
    )
    res.add_argument(
        "--short-only", action="store_true",
        help="Only resolve URLs on known link-shortener domains",
    )
    return p


def _add_domain_options(p: argparse.ArgumentParser) -> None:
    p.add_argument(
        "--domains", action="store_true",
        help="Treat arguments as bare domains rather than match patterns",
    )
    p.add_argument(
        "--no-subdomains", action="store_true",
        help="With --domains, do not match subdomains",
    )


def _emit(record: dict) -> None:
    print(json.dumps(record, ensure_ascii=False))


def _build_matcher(args: argparse.Namespace) -> MatchSet:
    if args.domains:
        return MatchSet.from_domains(args.patterns, match_subdomains=not args.no_subdomains)
    return MatchSet(args.patterns)


def _cmd_match(args: argparse.Namespace) -> int:
    matcher = _build_matcher(args)
    for url in args.url:
        _emit({"url": url, "match": matcher.test(url)})
    return 0


def _cmd_regex(args: argparse.Namespace) -> int:
    if args.domains:
        print(compile_domains(args.patterns, match_subdomains=not args.no_subdomains))
    else:
        print(compile_patterns(args.patterns))
    return 0


def _cmd_normalize(args: argparse.Namespace) -> int:
    for url in args.urls:
        _emit({"url": url, "normalized": normalize_url(url)})
    return 0


def _cmd_amp(args: argparse.Namespace) -> int:
    for url in args.urls:
        _emit({"url": url, "publisher": resolve_amp_url(url)})
    return 0


async def _resolve_all(urls: List[str], config: ResolverConfig) -> List[dict]:
    network = RequestsNetwork(config)
    resolver = RedirectResolver(network, config)
    resolver.initialize()
    try:
        futures = [resolver.resolve(url) for url in urls]
        outcomes = await asyncio.gather(*futures, return_exceptions=True)
    finally:
        resolver.close()
        network.close()

    records: List[dict] = []
    for url, outcome in zip(urls, outcomes):
        if isinstance(outcome, ResolutionError):
            records.append({"source": url, "destination": None, "error": str(outcome)})
        elif isinstance(outcome, BaseException):
            raise outcome
        else:
            records.append(outcome.to_dict())
    return records


def _cmd_resolve(args: argparse.Namespace) -> int:
    config = ResolverConfig(
        timeout=args.timeout,
        max_redirects=args.max_redirects,
        request_timeout=args.request_timeout,
        method="GET" if args.get else "HEAD",
    )
    urls = list(dict.fromkeys(args.urls))
    if args.short_only:
        skipped = [url for url in urls if not is_short_url(url)]
        for url in skipped:
            logger.info("Skipping %s (not a shortened link)", url)
        urls = [url for url in urls if is_short_url(url)]
    if not urls:
        return 0

    records = asyncio.run(_resolve_all(urls, config))
    for record in records:
        _emit(record)
    return 1 if any(record.get("error") for record in records) else 0


_COMMANDS = {
    "match": _cmd_match,
    "regex": _cmd_regex,
    "normalize": _cmd_normalize,
    "amp": _cmd_amp,
    "resolve": _cmd_resolve,
}


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
    )

    try:
        status = _COMMANDS[args.command](args)
    except (InvalidPatternError, InvalidUrlError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        sys.exit(EXIT_USAGE)
    sys.exit(status)


if __name__ == "__main__":
    main()
