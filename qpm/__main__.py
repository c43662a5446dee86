"""
Main CLI entry point for the Quartz plugin manager.

Launches the TUI for one Quartz project.
"""

import argparse
import sys
from pathlib import Path

import yaml

from qpm.logging import configure_logging_from_args, get_logger
from qpm.paths import PROJECT_DIR_ENV_VAR, ProjectPaths


def build_parser() -> argparse.ArgumentParser:
    """
    Build the argument parser.

    Returns:
        Configured ArgumentParser
    """
    parser = argparse.ArgumentParser(
        prog="qpm",
        description="Quartz plugin manager - edit plugins, layout and settings of a Quartz site",
    )
    parser.add_argument(
        "--project-dir",
        type=Path,
        help=f"Quartz project root (default: ${PROJECT_DIR_ENV_VAR} or the current directory)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose output (DEBUG level)",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Set logging level (overrides --verbose)",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        help="Write logs to file",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """
    Main entry point for the qpm CLI.

    Args:
        argv: Command-line arguments (for testing)

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    # The terminal belongs to Textual; logs only go to --log-file.
    configure_logging_from_args(
        verbose=args.verbose,
        log_level=args.log_level,
        log_file=str(args.log_file) if args.log_file else None,
        console=False,
    )

    logger = get_logger(__name__)
    logger.debug("Parsed arguments: %s", args)

    paths = ProjectPaths.discover(args.project_dir)
    if not paths.root.is_dir():
        logger.error("Project directory not found: %s", paths.root)
        print(f"Error: project directory not found: {paths.root}", file=sys.stderr)
        return 1

    from qpm.config.store import DocumentStore

    store = DocumentStore.for_project(paths)
    try:
        store.load()
    except (OSError, ValueError, yaml.YAMLError) as e:
        logger.error("Could not read configuration: %s", e)
        print(f"Error: could not read configuration in {paths.root}: {e}", file=sys.stderr)
        return 1

    try:
        logger.info("Starting TUI for %s", paths.root)
        from qpm.ui.tui.app import run_tui

        return run_tui(paths, store)

    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        print("\nInterrupted by user.")
        return 130  # Standard exit code for SIGINT

    except Exception as e:
        logger.exception("Unhandled exception in main")
        print(f"\nError: {e}", file=sys.stderr)
        if args.verbose:
            raise
        return 1


if __name__ == "__main__":
    sys.exit(main())
