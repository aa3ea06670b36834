"""CLI entrypoint for phish_link_guard."""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
import sys

from pydantic import ValidationError

from phish_link_guard.config.reference import load_reference_data
from phish_link_guard.config.settings import load_config
from phish_link_guard.core.errors import ConfigError, InputFileError
from phish_link_guard.orchestrator.build import create_aggregator
from phish_link_guard.orchestrator.verdict import format_analysis
from phish_link_guard.tools.intel.email_meta import EmailMetadata, analyze_email_metadata


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="phish-link-guard", description="Score links for phishing risk.")
    parser.add_argument("--url", action="append", default=[], help="Link to analyze; repeat for a batch.")
    parser.add_argument("--context", help="Text surrounding the link(s), e.g. the email body.")
    parser.add_argument("--page-url", help="URL of the page the link appears on.")
    parser.add_argument("--email", help="Path to a JSON file with sender_email/display_name/reply_to/subject/body.")
    parser.add_argument("--whitelist", action="append", default=[], help="Trusted domain; repeatable.")
    parser.add_argument("--blacklist", action="append", default=[], help="Blocked domain; repeatable.")
    parser.add_argument("--config", help="Path to a settings yaml file.")
    parser.add_argument("--log-level", help="Override the configured log level.")
    parser.add_argument("--refresh-feed", action="store_true", help="Refresh the reputation feed before analysis.")
    return parser


def load_email_metadata(path: str) -> EmailMetadata:
    try:
        payload = json.loads(Path(path).read_text(encoding="utf-8"))
        return EmailMetadata.model_validate(payload)
    except (OSError, UnicodeDecodeError) as exc:
        raise InputFileError(f"cannot read {path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise InputFileError(f"{path} is not valid JSON: {exc.msg} at line {exc.lineno}") from exc
    except ValidationError as exc:
        raise InputFileError(f"{path} is not valid email metadata: {exc.error_count()} error(s)") from exc


def run(args: argparse.Namespace) -> dict[str, object]:
    config = load_config(args.config)
    email = load_email_metadata(args.email) if args.email else None
    logging.basicConfig(
        level=(args.log_level or config.log_level).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    output: dict[str, object] = {}
    if args.url:
        with create_aggregator(
            config,
            whitelist=args.whitelist,
            blacklist=args.blacklist,
            refresh_feed=args.refresh_feed,
        ) as aggregator:
            results = aggregator.analyze_links(args.url, args.context, page_url=args.page_url)
            output["links"] = [format_analysis(result) for result in results]
            output["stats"] = aggregator.stats.snapshot().model_dump(mode="json")
    if email is not None:
        report = analyze_email_metadata(email, load_reference_data(config.reference_data_path))
        output["email"] = report.model_dump(mode="json")
    return output


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not args.url and not args.email:
        parser.error("pass at least one --url or an --email file")
    try:
        output = run(args)
    except ConfigError as exc:
        print(f"configuration error: {exc}", file=sys.stderr)
        return 2
    except InputFileError as exc:
        print(f"email file error: {exc}", file=sys.stderr)
        return 2
    print(json.dumps(output, ensure_ascii=False, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
