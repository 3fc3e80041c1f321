import asyncio
import argparse
import json
import logging
import signal
from core.config import ScanConfig
from core.config_loader import load_config
from core.errors import ScannerError
from core.extractor_registry import ExtractorRegistry
from core.scanner import Scanner, DEFAULT_METHODS
from core.wordlist_loader import available_groups, load_wordlist, load_wordlist_file
from output.formatters import FORMATTERS, get_formatter


def _load_headers(path: str, logger: logging.Logger):
    """Read a JSON object of extra headers. Returns None on any problem."""
    try:
        with open(path, 'r') as f:
            headers = json.load(f)
    except FileNotFoundError:
        logger.error(f"Headers file not found: {path}")
        return None
    except json.JSONDecodeError as e:
        logger.error(f"Invalid JSON in headers file: {e}")
        return None
    if not isinstance(headers, dict):
        logger.error("Headers file must contain a JSON object (dictionary)")
        return None
    logger.info(f"Loaded {len(headers)} custom headers from {path}")
    return {str(k): str(v) for k, v in headers.items()}


def build_config(args, logger: logging.Logger):
    if args.config:
        config = load_config(args.config, base_url=args.url)
    else:
        config = ScanConfig(base_url=args.url)

    overrides = {}
    if args.depth is not None:
        overrides["scan_depth"] = args.depth
    if args.workers is not None:
        overrides["workers"] = args.workers
    if args.timeout is not None:
        overrides["timeout"] = args.timeout
    if args.user_agent:
        overrides["user_agent"] = args.user_agent
    if args.proxy:
        overrides["proxy_urls"] = tuple(args.proxy)
    if args.rotate_proxies:
        overrides["proxy_rotate"] = True
    if args.exclude_extractors:
        overrides["exclude_extractors"] = frozenset(args.exclude_extractors)
    if args.insecure:
        overrides["insecure_ssl"] = True
    if args.headers_file:
        headers = _load_headers(args.headers_file, logger)
        if headers is None:
            return None
        overrides["headers"] = {**config.headers, **headers}

    return config.replace(**overrides) if overrides else config


def main(argv=None):
    parser = argparse.ArgumentParser(description="Web endpoint discovery and brute-force prober")
    parser.add_argument("url", nargs="?", help="Target base URL (e.g., https://example.com)")
    parser.add_argument("--mode", type=str, default="all", choices=["discover", "scan", "all"], help="discover (crawl only), scan (wordlist only) or all (default)")
    parser.add_argument("--config", type=str, help="Path to a YAML file with scanner settings")
    parser.add_argument("--depth", type=int, help="Maximum crawl depth")
    parser.add_argument("--workers", type=int, help="Number of concurrent brute-force workers")
    parser.add_argument("--timeout", type=float, help="Request timeout in seconds")
    parser.add_argument("--user-agent", type=str, help="User-Agent header to send")
    parser.add_argument("--methods", type=str, nargs="+", default=list(DEFAULT_METHODS), help="HTTP methods to probe")
    parser.add_argument("--wordlist", type=str, help="Path to a wordlist file (one path per line)")
    parser.add_argument("--wordlist-group", type=str, default="common", help="Built-in wordlist group (default: common)")
    parser.add_argument("--delay", type=float, default=0.0, help="Delay in seconds after each probe, per worker")
    parser.add_argument("--proxy", type=str, action="append", help="Proxy URL (repeatable)")
    parser.add_argument("--rotate-proxies", action="store_true", help="Switch proxy after each failed request")
    parser.add_argument("--insecure", action="store_true", help="Skip TLS certificate verification")
    parser.add_argument("--headers-file", type=str, help="Path to JSON file containing additional HTTP headers")
    parser.add_argument("--format", type=str, default="json", choices=sorted(FORMATTERS), help="Output format (default: json)")
    parser.add_argument("--list-wordlists", action="store_true", help="List built-in wordlist groups and exit")
    parser.add_argument("--list-extractors", action="store_true", help="List available page extractors and exit")
    parser.add_argument("--exclude-extractors", type=str, nargs="+", help="Extractor names to skip while crawling")
    parser.add_argument("--log-level", type=str, default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"], help="Logging verbosity level (default: INFO)")
    args = parser.parse_args(argv)

    # Configure logging
    logging.basicConfig(
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        level=getattr(logging, args.log_level),
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    logger = logging.getLogger(__name__)

    if args.list_wordlists:
        print("Available wordlist groups:")
        for name in available_groups():
            print(f"  - {name}")
        return

    if args.list_extractors:
        print("Available extractors:")
        for name in ExtractorRegistry.get_all_names():
            suffix = " (followed)" if ExtractorRegistry.follows(name) else ""
            print(f"  - {name}{suffix}")
        return

    if not args.url:
        parser.error("URL is required unless using --list-wordlists or --list-extractors")

    try:
        config = build_config(args, logger)
    except ScannerError as e:
        logger.error(f"Invalid configuration: {e}")
        return
    if config is None:
        return

    try:
        wordlist = load_wordlist_file(args.wordlist) if args.wordlist else load_wordlist(args.wordlist_group)
    except (OSError, KeyError) as e:
        logger.error(f"Could not load wordlist: {e}")
        return

    formatter = get_formatter(args.format)

    async def run():
        async with Scanner(config) as scanner:
            loop = asyncio.get_running_loop()
            try:
                loop.add_signal_handler(signal.SIGINT, scanner.stop)
            except NotImplementedError:
                pass

            records = []
            if args.mode in ("discover", "all"):
                logger.info(f"Discovering endpoints on {config.base_url}...")
                endpoints = await scanner.discover()
                logger.info(f"Discovered {len(endpoints)} endpoints")
                records.extend(endpoints)

            if args.mode in ("scan", "all"):
                logger.info(f"Probing {len(wordlist)} paths with methods {', '.join(args.methods)}")
                results = await scanner.scan_with_wordlist(wordlist, args.methods, delay=args.delay)
                records.extend(results)

            # In "all" mode crawled endpoints come first, then probe results
            print(formatter.format(records))

            stats = scanner.get_stats()
            logger.info(
                f"Done: {stats.total_requests} requests, {stats.successful} successful, "
                f"{stats.failed} failed, {stats.errors} errors, {stats.total_discovered} discovered"
            )

    try:
        asyncio.run(run())
    except ScannerError as e:
        logger.error(f"Scan aborted: {e}")


if __name__ == "__main__":
    main()
