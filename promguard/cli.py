from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional

from promguard.config import get_settings
from promguard.guardrails.config import GuardrailsConfigError, parse_guardrails
from promguard.guardrails.engine import validate_sync
from promguard.metadata import MetadataProvider, MetadataSnapshot, StaticMetadataProvider
from promguard.metadata import PrometheusTSDBProvider
from promguard.telemetry.logging import configure_root_logging
from promguard.timeutil import TimeRange

EXIT_SAFE = 0
EXIT_UNSAFE = 1
EXIT_CONFIG = 2


def _build_parser() -> argparse.ArgumentParser:
    s = get_settings()
    parser = argparse.ArgumentParser(
        prog="promguard-validate",
        description="Check a PromQL query against the guardrails before running it.",
    )
    parser.add_argument("query")
    parser.add_argument("--prometheus-url", default=s.PROMETHEUS_URL)
    parser.add_argument("--token", default=s.PROMETHEUS_TOKEN)
    parser.add_argument("--insecure", action="store_true", default=s.PROMETHEUS_INSECURE)
    parser.add_argument(
        "--tsdb-stats-limit",
        type=int,
        default=s.TSDB_STATS_LIMIT,
        help="entries per statistic requested from the TSDB status API",
    )
    parser.add_argument(
        "--guardrails",
        default=s.GUARDRAILS,
        help="'all', 'none', or a comma-separated list of "
        "disallow-explicit-name-label, require-label-matcher, disallow-blanket-regex",
    )
    parser.add_argument(
        "--guardrails.max-metric-cardinality",
        dest="max_metric_cardinality",
        type=int,
        default=s.GUARDRAILS_MAX_METRIC_CARDINALITY,
        help="maximum series per metric (0 = disabled)",
    )
    parser.add_argument(
        "--guardrails.max-label-cardinality",
        dest="max_label_cardinality",
        type=int,
        default=s.GUARDRAILS_MAX_LABEL_CARDINALITY,
        help="maximum label values for a blanket regex (0 = always reject blanket regex)",
    )
    parser.add_argument("--start", help="NOW, NOW-1h, RFC3339 or unix seconds")
    parser.add_argument("--end", help="NOW, NOW-1h, RFC3339 or unix seconds")
    parser.add_argument(
        "--snapshot",
        type=Path,
        help='JSON file {"series": {...}, "labels": {...}} used instead of the backend',
    )
    parser.add_argument("--timeout", type=float, default=s.METADATA_TIMEOUT_S)
    parser.add_argument("--log-level", default="WARNING")
    return parser


def _provider(args: argparse.Namespace) -> MetadataProvider:
    if args.snapshot is not None:
        data = json.loads(args.snapshot.read_text(encoding="utf-8"))
        return StaticMetadataProvider(MetadataSnapshot.from_dict(data))
    return PrometheusTSDBProvider(
        args.prometheus_url,
        token=args.token,
        timeout_s=args.timeout,
        verify_tls=not args.insecure,
        limit=args.tsdb_stats_limit,
    )


def main(argv: Optional[List[str]] = None) -> int:
    args = _build_parser().parse_args(argv)
    configure_root_logging(args.log_level, stream=sys.stderr, force=True)

    try:
        config = parse_guardrails(args.guardrails)
        if config is not None:
            config = config.with_thresholds(
                max_metric_cardinality=args.max_metric_cardinality,
                max_label_cardinality=args.max_label_cardinality,
            )
        time_range = TimeRange.parse(args.start, args.end)
        provider = _provider(args)
    except (GuardrailsConfigError, ValueError, OSError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return EXIT_CONFIG

    verdict = validate_sync(
        args.query, provider, config, time_range=time_range, timeout_s=args.timeout
    )
    print(json.dumps(verdict.to_dict(), indent=2))
    return EXIT_SAFE if verdict.safe else EXIT_UNSAFE


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
