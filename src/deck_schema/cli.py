"""
Command Line Interface for deck-schema

Provides subcommands for:
- convert: Convert elements or slides in a JSON file to V1 or V2
- detect: Report the version mix of a file and a recommended target
- check: Run the compatibility checks
"""

import sys
import json
import logging
import argparse
from pathlib import Path
from typing import Any, Dict, List

from .config import create_default_config, load_config
from .converter import SmartVersionConverter
from .detect import detect_elements_version
from .diagnose import check_compatibility
from .elements import background_to_v1, background_to_v2
from .models import Version
from .unified import UnifiedElementCollection


def _read_json(path: str) -> Any:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def _collect_elements(data: Any) -> List[Dict[str, Any]]:
    """Flatten a list, an ``{"elements": [...]}`` or a ``{"slides": [...]}`` document."""
    if isinstance(data, list):
        return data
    if isinstance(data, dict) and isinstance(data.get("slides"), list):
        return [el for slide in data["slides"] for el in slide.get("elements") or []]
    if isinstance(data, dict) and isinstance(data.get("elements"), list):
        return data["elements"]
    raise ValueError("Expected a JSON list of elements, or an object with 'elements' or 'slides'")


def _convert_document(data: Any, converter: SmartVersionConverter, target: Version) -> Any:
    if isinstance(data, list):
        return converter.smart_batch_convert(data, target).converted

    if isinstance(data, dict) and isinstance(data.get("slides"), list):
        background_fn = background_to_v2 if target == Version.v2 else background_to_v1
        slides = []
        for slide in data["slides"]:
            converted = dict(slide)
            converted["elements"] = converter.smart_batch_convert(slide.get("elements") or [], target).converted
            if "background" in slide:
                converted["background"] = background_fn(slide["background"])
            slides.append(converted)
        return {**data, "slides": slides}

    if isinstance(data, dict) and isinstance(data.get("elements"), list):
        return {**data, "elements": converter.smart_batch_convert(data["elements"], target).converted}

    raise ValueError("Expected a JSON list of elements, or an object with 'elements' or 'slides'")


def convert_command(args: argparse.Namespace) -> int:
    """Execute convert command."""
    target = Version(args.to)

    try:
        config = load_config(args.config) if args.config else create_default_config()
        converter = SmartVersionConverter(config.converter)
        data = _read_json(args.input)
        result = _convert_document(data, converter, target)

        if args.output:
            print("=" * 60)
            print(f"Converting to {target.value.upper()}")
            print("=" * 60)
            with open(args.output, "w", encoding="utf-8") as f:
                json.dump(result, f, indent=2, ensure_ascii=False)
            print(f"Input:  {args.input}")
            print(f"Output: {args.output}")
        else:
            print(json.dumps(result, indent=2, ensure_ascii=False))

        return 0

    except Exception as e:
        print(f"\nError: {e}", file=sys.stderr)
        if args.verbose:
            import traceback
            traceback.print_exc()
        return 1


def detect_command(args: argparse.Namespace) -> int:
    """Execute detect command."""
    try:
        elements = _collect_elements(_read_json(args.input))
        stats = UnifiedElementCollection(elements).version_stats()
        recommendation = SmartVersionConverter().infer_best_strategy(elements)

        if args.json:
            print(json.dumps({
                "version": detect_elements_version(elements),
                "stats": stats.to_dict(),
                "recommendation": recommendation.to_dict(),
            }, indent=2))
            return 0

        print("=" * 60)
        print("Version Detection")
        print("=" * 60)
        print(f"File: {Path(args.input).name}")
        print(f"Detected: {detect_elements_version(elements)}")
        print(f"Elements: {stats.total}  |  V1: {stats.v1}  |  V2: {stats.v2}")
        print("-" * 60)
        print(f"Recommended target: {recommendation.recommended_version.value.upper()} "
              f"(confidence {recommendation.confidence:.0%})")
        for reason in recommendation.reasoning:
            print(f"  - {reason}")
        return 0

    except Exception as e:
        print(f"\nError: {e}", file=sys.stderr)
        if args.verbose:
            import traceback
            traceback.print_exc()
        return 1


def check_command(args: argparse.Namespace) -> int:
    """Execute check command."""
    try:
        report = check_compatibility(_collect_elements(_read_json(args.input)))

        if args.json:
            print(json.dumps(report.to_dict(), indent=2))
        else:
            report.print_report()

        if args.strict and not report.compatible:
            return 1

        return 0

    except Exception as e:
        print(f"\nError: {e}", file=sys.stderr)
        if args.verbose:
            import traceback
            traceback.print_exc()
        return 1


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog='deck-schema',
        description='deck-schema - Convert presentation elements between the V1 and V2 schemas',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s convert deck.json --to v2 -o deck.v2.json
  %(prog)s convert elements.json --to v1 --config deck-schema.yaml
  %(prog)s detect deck.json --json
  %(prog)s check deck.json --strict
        """
    )

    parser.add_argument('-v', '--verbose', action='store_true', help='Show detailed output')

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    # Convert command
    convert_parser = subparsers.add_parser('convert', help='Convert elements or slides to a schema version')
    convert_parser.add_argument('input', help='Input JSON file')
    convert_parser.add_argument('--to', required=True, choices=['v1', 'v2'], help='Target version')
    convert_parser.add_argument('--output', '-o', help='Output JSON file (default: stdout)')
    convert_parser.add_argument('--config', '-c', help='Configuration file (YAML/JSON)')
    convert_parser.add_argument('-v', '--verbose', action='store_true', default=argparse.SUPPRESS,
                                help='Show detailed output')

    # Detect command
    detect_parser = subparsers.add_parser('detect', help='Report element versions and a recommended target')
    detect_parser.add_argument('input', help='Input JSON file')
    detect_parser.add_argument('--json', action='store_true', help='Output results as JSON')
    detect_parser.add_argument('-v', '--verbose', action='store_true', default=argparse.SUPPRESS,
                               help='Show detailed output')

    # Check command
    check_parser = subparsers.add_parser('check', help='Run compatibility checks')
    check_parser.add_argument('input', help='Input JSON file')
    check_parser.add_argument('--json', action='store_true', help='Output results as JSON')
    check_parser.add_argument('--strict', action='store_true', help='Exit with error if issues found')
    check_parser.add_argument('-v', '--verbose', action='store_true', default=argparse.SUPPRESS,
                              help='Show detailed output')

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format='%(levelname)s %(name)s: %(message)s')

    if args.command == 'convert':
        return convert_command(args)
    elif args.command == 'detect':
        return detect_command(args)
    elif args.command == 'check':
        return check_command(args)
    else:
        parser.print_help()
        return 1


if __name__ == '__main__':
    sys.exit(main())
