"""
Avert CLI
"""
import argparse
import json
import sys
from pathlib import Path

from avert.config.loader import AvertSettings, load_options_file
from avert.config.options import load_options
from avert.logging_config import setup_logging


def main(argv=None):
    """Main CLI entry point"""
    parser = argparse.ArgumentParser(
        prog="python -m avert",
        description="Avert - request sanitization options tool",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Validate an options file and show the resolved flags
  python -m avert check avert.yaml

  # Same, as JSON
  python -m avert check avert.yaml --json
        """
    )

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    check_parser = subparsers.add_parser('check', help='Validate an avert options file')
    check_parser.add_argument('path', help='YAML file of avert options')
    check_parser.add_argument('--json', action='store_true', help='Print resolved options as JSON')

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    settings = AvertSettings()
    setup_logging(log_level=settings.log_level, json_format=settings.log_json)

    if args.command == 'check':
        return cmd_check(args)
    return 0


def cmd_check(args):
    """Execute check command"""
    path = Path(args.path)
    if not path.exists():
        print(f"Error: {path} does not exist", file=sys.stderr)
        return 1

    try:
        options = load_options(load_options_file(path))
    except ValueError as e:
        print(f"Invalid options in {path}:\n{e}", file=sys.stderr)
        return 1

    flags = options.flags()
    if args.json:
        print(json.dumps(flags, indent=2, sort_keys=True))
        return 0

    print(f"{path}: OK")
    for name, enabled in sorted(flags.items()):
        print(f"  {name}: {'on' if enabled else 'off'}")
    print(f"  dollar_sign_policy: {options.dollar_sign_policy.value}")
    print(f"  curly_bracket_policy: {options.curly_bracket_policy.value}")
    return 0


if __name__ == '__main__':
    sys.exit(main())
