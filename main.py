#!/usr/bin/env python3
"""
RoofCalc - CLI Entry Point

Reads roof measurement reports (iRoof, EagleView, Hover, RoofSnap and
generic PDFs), extracts the measurements and writes a material order for
each one using a preset.

Usage:
    # Single PDF
    python main.py ./reports/123-main.pdf ./output

    # Batch folder with a preset
    python main.py ./reports/ ./output --preset "Architectural"

    # Preset management
    python main.py --list-presets
    python main.py --export-preset "Architectural" ./architectural.roofpreset
    python main.py --import-preset ./shared.roofpreset

    # Show workflow visualization
    python main.py --show-graph
"""

import argparse
import logging
import sys
from dataclasses import asdict
from pathlib import Path
from datetime import datetime

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent))

from version import __version__, APP_NAME
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S'
)
logger = logging.getLogger(__name__)


def _list_presets(store) -> int:
    print(f"\n  Presets ({store.path or 'in memory'})")
    print("  " + "-" * 56)
    for preset in store.all():
        tag = "built-in" if preset.is_built_in else "custom"
        print(f"  {preset.name:<28} [{tag}]")
        if preset.description:
            print(f"      {preset.description}")
    print()
    return 0


def _export_preset(store, name: str, destination: str) -> int:
    from roofing.errors import PresetError

    try:
        document = store.export_preset(name)
    except PresetError as e:
        logger.error(str(e))
        return 1
    Path(destination).write_text(document, encoding="utf-8")
    print(f"  Exported '{name}' to {destination}")
    return 0


def _import_preset(store, source: str) -> int:
    from roofing.errors import InvalidPresetImportError

    try:
        document = Path(source).read_text(encoding="utf-8")
        preset = store.import_preset(document)
    except OSError as e:
        logger.error(f"Could not read preset file: {e}")
        return 1
    except InvalidPresetImportError as e:
        logger.error(str(e))
        for problem in e.problems:
            print(f"    - {problem}")
        return 1
    print(f"  Imported preset '{preset.name}'")
    return 0


def main(argv=None):
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        description=f"{APP_NAME} - Material orders from roof measurement reports",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s ./reports/123-main.pdf ./output
  %(prog)s ./reports/ ./output --preset "Premium Ice Belt" --threshold 85
  %(prog)s --list-presets
  %(prog)s --show-graph
        """
    )

    parser.add_argument(
        "input_path",
        nargs="?",
        help="PDF report or folder containing PDF reports"
    )

    parser.add_argument(
        "output_path",
        nargs="?",
        help="Directory for order reports"
    )

    parser.add_argument(
        "--preset", "-p",
        default=None,
        help="Preset to calculate materials with (default: from settings)"
    )

    parser.add_argument(
        "--threshold", "-t",
        type=float,
        default=None,
        help="Confidence below which an order needs verification, 50-100 (default: from settings)"
    )

    parser.add_argument(
        "--config", "-c",
        default=None,
        help="Path to roofing.yaml (default: ./config/roofing.yaml or ~/.roofcalc/roofing.yaml)"
    )

    parser.add_argument(
        "--settings-dir",
        default=None,
        help="Directory holding settings.json and presets.json"
    )

    parser.add_argument(
        "--list-presets",
        action="store_true",
        help="List available presets and exit"
    )

    parser.add_argument(
        "--export-preset",
        nargs=2,
        metavar=("NAME", "FILE"),
        help="Export a preset to a .roofpreset JSON file and exit"
    )

    parser.add_argument(
        "--import-preset",
        metavar="FILE",
        help="Import a preset JSON file and exit"
    )

    parser.add_argument(
        "--no-checkpoints",
        action="store_true",
        help="Disable state checkpointing"
    )

    parser.add_argument(
        "--show-graph",
        action="store_true",
        help="Show workflow graph visualization and exit"
    )

    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose/debug logging"
    )

    parser.add_argument(
        "--version", "-V",
        action="version",
        version=f"%(prog)s {__version__}"
    )

    args = parser.parse_args(argv)

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    if args.show_graph:
        from importer import get_workflow_visualization
        print(get_workflow_visualization())
        return 0

    from roofing.config import load_config, MIN_CONFIDENCE_THRESHOLD, MAX_CONFIDENCE_THRESHOLD
    from roofing.errors import PresetError
    from settings import SettingsManager

    config = load_config(args.config)
    settings = SettingsManager(config_dir=args.settings_dir, config=config)
    store = settings.preset_store()

    if args.list_presets:
        return _list_presets(store)
    if args.export_preset:
        return _export_preset(store, *args.export_preset)
    if args.import_preset:
        return _import_preset(store, args.import_preset)

    if not args.input_path or not args.output_path:
        parser.error("input_path and output_path are required (unless using a preset or graph option)")

    threshold = args.threshold if args.threshold is not None else settings.get_confidence_threshold()
    if not MIN_CONFIDENCE_THRESHOLD <= threshold <= MAX_CONFIDENCE_THRESHOLD:
        parser.error(f"threshold must be between 50 and 100, got {threshold}")

    preset_name = args.preset or settings.get_default_preset()
    try:
        preset = store.get(preset_name)
    except PresetError as e:
        logger.error(f"{e}. Available: {', '.join(store.names())}")
        return 1

    input_path = Path(args.input_path).resolve()
    output_path = Path(args.output_path).resolve()

    if not input_path.exists():
        logger.error(f"Input path does not exist: {input_path}")
        return 1

    output_path.mkdir(parents=True, exist_ok=True)

    print("\n" + "=" * 60)
    print(f"  {APP_NAME} {__version__}")
    print("  Roof Measurement Import & Material Orders")
    print("=" * 60)
    print(f"  Input:     {input_path}")
    print(f"  Output:    {output_path}")
    print(f"  Preset:    {preset.name}")
    print(f"  Threshold: {threshold:.0f}")
    print("=" * 60 + "\n")

    try:
        from importer import run_import_workflow

        start_time = datetime.now()

        result = run_import_workflow(
            input_path=str(input_path),
            output_path=str(output_path),
            preset=preset,
            confidence_threshold=threshold,
            parsing=asdict(config.parsing),
            enable_checkpoints=not args.no_checkpoints,
        )

        duration = (datetime.now() - start_time).total_seconds()

        files_completed = result.get("files_completed", [])
        files_failed = result.get("files_failed", [])

        print("\n" + "=" * 60)
        print("  IMPORT COMPLETE")
        print("=" * 60)
        print(f"  Files Processed:    {len(files_completed) + len(files_failed)}")
        print(f"  Successful:         {len(files_completed)}")
        print(f"  Failed:             {len(files_failed)}")
        print(f"  Needs Verification: {result.get('verification_count', 0)}")
        print(f"  Total Squares:      {result.get('total_squares', 0):,.1f}")
        print(f"  Duration:           {duration:.1f} seconds")
        print("=" * 60)
        print(f"\n  Reports saved to: {result.get('output_path', output_path)}")

        for f in files_completed:
            flag = "  (needs verification)" if f.get("needs_verification") else ""
            print(f"    - {f['filename']}: {f['detected_format']}, confidence {f['confidence']:.0f}{flag}")

        if files_failed:
            print("\n  Failed files:")
            for f in files_failed:
                print(f"    - {f.get('filename', 'Unknown')}: {f.get('errors', ['Unknown error'])[0]}")

        print()
        return 0 if files_completed or not files_failed else 1

    except Exception as e:
        logger.exception(f"Workflow failed: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
