"""CLI entry point for media duplicate resolver."""

import argparse
import logging
import os
import sys
from pathlib import Path

from pydantic import ValidationError

from .. import __version__
from ..core import (
    DEFAULT_GROUP_KEY,
    ApplicationConfig,
    DuplicateCleanupService,
    DuplicateGroup,
    DuplicateResolver,
    FolderSizePolicy,
    LibraryIndexError,
)
from ..host import JellyfinLibraryIndex, JellyfinSettings, JsonSnapshotIndex, LibraryIndex

ENV_API_KEY = "JELLYFIN_API_KEY"
ENV_SERVER = "JELLYFIN_URL"


def setup_logging(level: str = "INFO") -> None:
    """
    Set up logging configuration.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR)
    """
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def build_config(args: argparse.Namespace) -> ApplicationConfig:
    """Create the application configuration from parsed arguments."""
    return ApplicationConfig(
        group_key=args.group_key,
        folder_size_threshold=int(args.folder_threshold_mb * 1024 * 1024),
        folder_size_policy=FolderSizePolicy(args.folder_size_policy),
        remove_empty_folders=not args.keep_folders,
        log_level=args.log_level,
    )


def build_index(args: argparse.Namespace) -> LibraryIndex:
    """
    Create the library index selected on the command line.

    Raises:
        ValueError: If neither a server nor a snapshot is given, or the API key is missing
    """
    if args.snapshot:
        return JsonSnapshotIndex(args.snapshot)

    server = args.server or os.environ.get(ENV_SERVER)
    if not server:
        raise ValueError(f"A --server URL (or {ENV_SERVER}) or a --snapshot file is required")

    api_key = args.api_key or os.environ.get(ENV_API_KEY)
    if not api_key:
        raise ValueError(f"An --api-key (or {ENV_API_KEY}) is required to talk to {server}")

    return JellyfinLibraryIndex(
        JellyfinSettings(base_url=server, api_key=api_key, user_id=args.user_id)
    )


def print_duplicate_groups(groups: list[DuplicateGroup], detailed: bool = False) -> None:
    """
    Print duplicate groups to console.

    Args:
        groups: Groups from the resolver
        detailed: Whether to show the ranking values of every record
    """
    print("\n" + "=" * 60)
    print("DUPLICATE GROUPS")
    print("=" * 60)

    if not groups:
        print("\n✅ No duplicates found!")
        return

    for i, group in enumerate(groups, 1):
        print(f"\nGroup {i}: {group.key}={group.value} ({group.record_count} copies)")
        for rank, entry in enumerate(group.ranked):
            marker = "keep   " if rank == 0 else "discard"
            print(f"  [{marker}] {entry.record.path}")
            if detailed:
                print(
                    f"            height={entry.max_height} bitrate={entry.max_bitrate} "
                    f"size={entry.file_size / (1024 * 1024):.1f} MB"
                )


def create_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser."""
    parser = argparse.ArgumentParser(
        description="Media Duplicate Resolver - Delete lower-quality duplicate movies from a media library",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Show what would be deleted (dry-run is the default)
  media-duplicate-resolver --server http://localhost:8096 --api-key KEY

  # Actually delete the duplicates
  media-duplicate-resolver --server http://localhost:8096 --api-key KEY --execute

  # List ranked duplicate groups from a saved /Items export
  media-duplicate-resolver --snapshot items.json --list --detailed

  # Serve the HTTP endpoints
  media-duplicate-resolver --server http://localhost:8096 --api-key KEY --serve --port 8080
        """,
    )

    # Library source
    parser.add_argument("--server", metavar="URL", help=f"Jellyfin server URL (or {ENV_SERVER})")
    parser.add_argument("--api-key", help=f"Jellyfin API key (or {ENV_API_KEY})")
    parser.add_argument("--user-id", help="Query the library as this Jellyfin user")
    parser.add_argument(
        "--snapshot", type=Path, metavar="FILE", help="Read items from a JSON export instead"
    )

    # Actions
    parser.add_argument(
        "--execute", action="store_true", help="Delete files (default is a dry-run report)"
    )
    parser.add_argument(
        "--list", action="store_true", help="List ranked duplicate groups without acting"
    )
    parser.add_argument(
        "--detailed", action="store_true", help="Show ranking values when listing groups"
    )
    parser.add_argument("--serve", action="store_true", help="Serve the HTTP endpoints")
    parser.add_argument("--host", default="127.0.0.1", help="Bind address for --serve")
    parser.add_argument("--port", type=int, default=8080, help="Port for --serve")

    # Policy
    parser.add_argument(
        "--group-key",
        default=DEFAULT_GROUP_KEY,
        help=f"Provider id used to group duplicates (default: {DEFAULT_GROUP_KEY})",
    )
    parser.add_argument(
        "--folder-threshold-mb",
        type=float,
        default=20.0,
        help="Remove the containing folder when it is smaller than this (default: 20)",
    )
    parser.add_argument(
        "--folder-size-policy",
        choices=[p.value for p in FolderSizePolicy],
        default=FolderSizePolicy.AFTER.value,
        help="Measure the folder after or before the file is removed (default: after)",
    )
    parser.add_argument(
        "--keep-folders", action="store_true", help="Never remove containing folders"
    )

    # Logging options
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="INFO",
        help="Set logging level (default: INFO)",
    )

    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    return parser


def main(argv: list[str] | None = None) -> int:
    """
    Main entry point for the CLI application.

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    # Set up logging
    setup_logging(args.log_level)
    logger = logging.getLogger(__name__)

    try:
        config = build_config(args)
        with build_index(args) as index:
            if args.list:
                resolver = DuplicateResolver(config)
                groups = resolver.find_duplicates(index.list_movies())
                print_duplicate_groups(groups, detailed=args.detailed)
                return 0

            service = DuplicateCleanupService(index, config)

            if args.serve:
                import uvicorn

                from ..web import create_app

                logger.info(f"Serving on http://{args.host}:{args.port}")
                uvicorn.run(create_app(service), host=args.host, port=args.port)
                return 0

            report = service.run(dry_run=not args.execute)
            print(report.to_text(), end="")
            print(str(report), file=sys.stderr)
            return 1 if report.failed else 0

    except KeyboardInterrupt:
        print("\n\nOperation cancelled by user.")
        return 1
    except (ValueError, ValidationError) as e:
        print(f"Error: {e}")
        return 1
    except LibraryIndexError as e:
        print(f"Error: {e}")
        return 1
    except Exception as e:
        logger.exception("Unexpected error occurred")
        print(f"Error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
