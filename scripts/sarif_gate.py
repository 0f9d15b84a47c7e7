#!/usr/bin/env python3
"""CI gate over a sarif-v2 report: fail when findings exceed the allowed counts."""
import argparse
import json
import sys

LEVELS = ("error", "warning", "note")


def load_report(path):
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def count_levels(report):
    counts = {lvl: 0 for lvl in LEVELS}
    for run in report.get("runs", []) or []:
        for r in run.get("results", []) or []:
            lvl = r.get("level") or "warning"
            counts[lvl] = counts.get(lvl, 0) + 1
    return counts


def count_failed_targets(report):
    failed = 0
    for run in report.get("runs", []) or []:
        if any(not inv.get("executionSuccessful", True) for inv in run.get("invocations", []) or []):
            failed += 1
    return failed


def main(argv=None):
    ap = argparse.ArgumentParser()
    ap.add_argument("--report", required=True, help="sarif-v2 report written by oss-detect-backdoor")
    ap.add_argument("--max_errors", type=int, default=0)
    ap.add_argument("--max_warnings", type=int, default=-1, help="-1 disables the check")
    ap.add_argument("--allow_failed_targets", action="store_true")
    args = ap.parse_args(argv)

    try:
        report = load_report(args.report)
    except (OSError, json.JSONDecodeError) as e:
        print(f"[gate] cannot read {args.report}: {e}")
        return 2

    counts = count_levels(report)
    failed_targets = count_failed_targets(report)

    print(f"[gate] errors={counts['error']} (max {args.max_errors})")
    print(f"[gate] warnings={counts['warning']} (max {'off' if args.max_warnings < 0 else args.max_warnings})")
    print(f"[gate] failed_targets={failed_targets}")

    failed = counts["error"] > args.max_errors
    failed = failed or (args.max_warnings >= 0 and counts["warning"] > args.max_warnings)
    failed = failed or (failed_targets > 0 and not args.allow_failed_targets)
    if failed:
        print("[gate] FAILED")
        return 1
    print("[gate] PASSED")
    return 0


if __name__ == "__main__":
    sys.exit(main())
