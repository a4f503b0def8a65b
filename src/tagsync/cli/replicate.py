"""Rewrite CLI commands: replicate, rename."""

import argparse
import re
import sys

from tagsync.cli.common import build_selector, collect_files, display, print_errors, resolve_root


def cmd_replicate(args: argparse.Namespace) -> int:
    from tagsync.engine import replicate_from_topic

    try:
        selector = build_selector(args)
    except (re.error, ValueError) as e:
        print(f"tagsync: {e}", file=sys.stderr)
        return 2
    root = resolve_root(args)
    result = replicate_from_topic(collect_files(args), selector, root, dry_run=args.dry_run)

    verb = "Would rewrite" if result.dry_run else "Rewrote"
    print(f"{verb} {result.replaced} occurrence(s) in {len(result.rewritten)} file(s)")
    for path in result.rewritten:
        print(f"  {display(path, root)}")
    if result.errors:
        print_errors(result.errors)

    if result.dry_run:
        print("\n[DRY RUN] No files were modified.")

    return 1 if result.errors else 0


def cmd_rename(args: argparse.Namespace) -> int:
    from tagsync.engine import rename_tag

    try:
        selector = build_selector(args)
    except ValueError as e:
        print(f"tagsync: {e}", file=sys.stderr)
        return 2
    root = resolve_root(args)
    result = rename_tag(
        collect_files(args), args.old, args.new,
        selector=selector, root=root, dry_run=args.dry_run,
    )

    if result.errors:
        print_errors(result.errors)
        return 1

    verb = "Would rename" if result.dry_run else "Renamed"
    print(f"{verb} '{result.old}' -> '{result.new}': {result.renamed} occurrence(s)")
    for path in result.rewritten:
        print(f"  {display(path, root)}")
    if result.dry_run:
        print("\n[DRY RUN] No files were modified.")
    return 0
