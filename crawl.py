#!/usr/bin/env python3
import argparse
import dataclasses
import logging
import sys

from wordcrawl.config import CrawlConfig, load_config, validate_start_urls
from wordcrawl.engine import Crawler
from wordcrawl.errors import ConfigurationError
from wordcrawl.parsing import UrlTools
from wordcrawl.prometheus_exporter import PrometheusExporter
from wordcrawl.storage import CrawlResultWriter


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Parallel, deadline-bounded word-frequency web crawler.")
    parser.add_argument("config", nargs="?", default=None, help="Path to a JSON crawl configuration.")
    parser.add_argument("--start", nargs="+", default=None, help="Starting URLs (override startPages).")
    parser.add_argument("--max-depth", type=int, default=None, help="Maximum crawl depth.")
    parser.add_argument("--timeout", type=float, default=None, help="Crawl time budget in seconds.")
    parser.add_argument("--popular-words", type=int, default=None, help="Number of popular words to report.")
    parser.add_argument("--parallelism", type=int, default=None, help="Requested number of worker threads.")
    parser.add_argument(
        "--ignore-url",
        dest="ignored_urls",
        action="append",
        default=None,
        help="Regex for URLs to skip (repeatable).",
    )
    parser.add_argument(
        "--ignore-word",
        dest="ignored_words",
        action="append",
        default=None,
        help="Regex for words to leave out of the counts (repeatable).",
    )
    parser.add_argument("--request-timeout", type=float, default=None, help="HTTP read timeout in seconds.")
    parser.add_argument("--out", dest="result_path", default=None, help="Write the JSON result here (default stdout).")
    parser.add_argument("-v", "--verbose", action="count", default=0, help="Increase logging verbosity.")
    parser.add_argument("--metrics-interval", type=float, default=None, help="Seconds between perf logs (0 to disable).")
    parser.add_argument("--prometheus-port", type=int, default=None, help="Serve Prometheus metrics on this port.")
    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> CrawlConfig:
    config = load_config(args.config) if args.config else CrawlConfig()
    overrides = {
        "start_urls": args.start,
        "max_depth": args.max_depth,
        "timeout_seconds": args.timeout,
        "popular_word_count": args.popular_words,
        "parallelism": args.parallelism,
        "ignored_urls": args.ignored_urls,
        "ignored_words": args.ignored_words,
        "request_timeout": args.request_timeout,
        "result_path": args.result_path,
        "metrics_interval": args.metrics_interval,
        "prometheus_port": args.prometheus_port,
    }
    config = dataclasses.replace(config, **{k: v for k, v in overrides.items() if v is not None})
    validate_start_urls(config.start_urls)
    config = dataclasses.replace(config, start_urls=UrlTools.normalize_start(config.start_urls))
    if not config.start_urls:
        raise ConfigurationError("no start URLs given (use startPages or --start)")
    config.validate()
    return config


def main(argv=None) -> int:
    args = parse_args(argv)
    log_level = logging.WARNING
    if args.verbose == 1:
        log_level = logging.INFO
    elif args.verbose >= 2:
        log_level = logging.DEBUG
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s %(levelname)s %(threadName)s %(message)s",
    )

    try:
        config = build_config(args)
        crawler = Crawler(config)
    except ConfigurationError as e:
        logging.error("Invalid configuration: %s", e)
        return 2

    exporter = None
    if config.prometheus_port:
        exporter = PrometheusExporter(crawler.metrics, port=config.prometheus_port)
        exporter.start()
        logging.info("Prometheus metrics available at http://0.0.0.0:%d/metrics", config.prometheus_port)

    try:
        result = crawler.crawl()
    finally:
        if exporter:
            exporter.stop()

    writer = CrawlResultWriter(result)
    if config.result_path:
        writer.write(config.result_path)
        logging.info("Result written to %s", config.result_path)
    else:
        writer.write_to(sys.stdout)
    return 0


if __name__ == "__main__":
    sys.exit(main())
