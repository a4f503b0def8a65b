"""Query CLI commands: check, list, print, whereis."""

import argparse
import re
import sys

from tagsync.cli.common import build_selector, collect_files, display, print_errors, resolve_root


def _selector(args: argparse.Namespace, **flags):
    try:
        return build_selector(args, **flags)
    except (re.error, ValueError) as e:
        print(f"tagsync: {e}", file=sys.stderr)
        return None


def cmd_check(args: argparse.Namespace) -> int:
    from tagsync.engine import check

    selector = _selector(args)
    if selector is None:
        return 2
    root = resolve_root(args)
    result = check(collect_files(args), selector, root)

    if not result.passed:
        print_errors(result.errors)
        return 1
    if selector.quiet:
        return 1 if result.inconsistent else 0

    for tag, definitions in result.groups:
        print(f"{tag}: {len(definitions)} variants")
        for d in definitions:
            print(f"  [{d.identity}] {len(d.references)} occurrence(s)")
            for ref in d.references:
                print(f"    {display(ref.file, root)}:{ref.line}")
    print(f"\n{len(result.inconsistent)} inconsistent tag(s)")
    return 1 if result.inconsistent else 0


def cmd_list(args: argparse.Namespace) -> int:
    from tagsync.engine import list_tags

    selector = _selector(args)
    if selector is None:
        return 2
    root = resolve_root(args)
    result = list_tags(collect_files(args), selector, root)

    if not result.passed:
        print_errors(result.errors)
        return 1
    if args.names:
        for name in result.names:
            print(name)
        return 0
    for ref in result.references:
        print(f"{display(ref.file, root)}:{ref.line}: {ref.tag} [{ref.identity}]")
    return 0


def cmd_print(args: argparse.Namespace) -> int:
    from tagsync.engine import print_tags

    selector = _selector(args)
    if selector is None:
        return 2
    root = resolve_root(args)
    result = print_tags(collect_files(args), selector, root)

    if not result.passed:
        print_errors(result.errors)
        return 1
    for tag, identity, body in result.definitions:
        print(f"── {tag} [{identity}]")
        sys.stdout.write(body)
    return 0


def cmd_whereis(args: argparse.Namespace) -> int:
    from tagsync.engine import whereis

    root = resolve_root(args)
    result = whereis(collect_files(args), args.name, root)

    if not result.passed:
        print_errors(result.errors)
        return 1
    if not result.references:
        print(f"tag '{args.name}' not found")
        return 1
    for ref in result.references:
        print(f"{display(ref.file, root)}:{ref.line} [{ref.identity}]")
    return 0
