"""Unified CLI for tagsync.

Usage:
    tagsync check [--pattern RE] [--topic FILE[:LINE]] [-q] [paths...]
    tagsync list [--pattern RE] [--topic FILE[:LINE]] [--names] [paths...]
    tagsync print [--pattern RE] [--topic FILE[:LINE]] [paths...]
    tagsync whereis <name> [paths...]
    tagsync replicate --from FILE[:LINE] [--to FILE[:LINE]] [--pattern RE] [--dry-run] [paths...]
    tagsync rename <old> <new> [--topic FILE[:LINE]] [--dry-run] [paths...]
"""

import argparse
import logging
import sys

import yaml

from tagsync import __version__
from tagsync.cli.query import cmd_check, cmd_list, cmd_print, cmd_whereis
from tagsync.cli.replicate import cmd_rename, cmd_replicate
from tagsync.log import setup_logging
from tagsync.paths import log_level


def _add_paths(p: argparse.ArgumentParser) -> None:
    p.add_argument(
        "paths", nargs="*",
        help="Files or directories to scan (default: the whole root)",
    )


def _add_filters(p: argparse.ArgumentParser) -> None:
    p.add_argument("--pattern", default=None, help="Regex on tag names")
    p.add_argument(
        "--topic", default=None,
        help="Only tags found in FILE (or starting at FILE:LINE)",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tagsync",
        description="Track and replicate tagged regions across documents",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--root", default=None,
        help="Document tree root (default: $TAGSYNC_ROOT or current directory)",
    )
    parser.add_argument(
        "--config", default=None,
        help="Path to .tagsync.yaml (default: <root>/.tagsync.yaml)",
    )
    parser.add_argument(
        "-v", "--verbose", action="count", default=0,
        help="More logging (repeat for debug)",
    )
    parser.add_argument(
        "--log-json", action="store_true",
        help="Emit log records as JSON lines",
    )
    sub = parser.add_subparsers(dest="command")

    # check
    chk = sub.add_parser("check", help="Report tags whose occurrences differ")
    _add_filters(chk)
    chk.add_argument(
        "-q", "--quiet", action="store_true",
        help="No output, exit status only",
    )
    _add_paths(chk)

    # list
    ls = sub.add_parser("list", help="List tag occurrences")
    _add_filters(ls)
    ls.add_argument("--names", action="store_true", help="Tag names only")
    _add_paths(ls)

    # print
    pr = sub.add_parser("print", help="Print every variant of matching tags")
    _add_filters(pr)
    _add_paths(pr)

    # whereis
    wh = sub.add_parser("whereis", help="Locate every occurrence of one tag")
    wh.add_argument("name", help="Tag name")
    _add_paths(wh)

    # replicate
    rep = sub.add_parser(
        "replicate", help="Copy tag bodies from a source to all other occurrences",
    )
    rep.add_argument(
        "--from", dest="topic", required=True,
        help="Source FILE or FILE:LINE holding the canonical bodies",
    )
    rep.add_argument(
        "--to", default=None,
        help="Only rewrite occurrences in FILE (or at FILE:LINE)",
    )
    rep.add_argument("--pattern", default=None, help="Regex on tag names")
    rep.add_argument(
        "--dry-run", action="store_true",
        help="Report changes without writing",
    )
    _add_paths(rep)

    # rename
    ren = sub.add_parser("rename", help="Rename a tag at its opening delimiters")
    ren.add_argument("old", help="Current tag name")
    ren.add_argument("new", help="New tag name")
    ren.add_argument(
        "--topic", default=None,
        help="Only rename occurrences in FILE (or at FILE:LINE)",
    )
    ren.add_argument(
        "--dry-run", action="store_true",
        help="Report changes without writing",
    )
    _add_paths(ren)

    return parser


def _configure_logging(args: argparse.Namespace) -> None:
    if args.verbose >= 2:
        level = logging.DEBUG
    elif args.verbose == 1:
        level = logging.INFO
    else:
        level = log_level()
    setup_logging(level=level, json_logs=args.log_json)


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    dispatch = {
        "check": cmd_check,
        "list": cmd_list,
        "print": cmd_print,
        "whereis": cmd_whereis,
        "replicate": cmd_replicate,
        "rename": cmd_rename,
    }
    try:
        _configure_logging(args)
        return dispatch[args.command](args)
    except (ValueError, yaml.YAMLError) as e:
        print(f"tagsync: config error: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
