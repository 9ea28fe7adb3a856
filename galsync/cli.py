"""
Command Line Interface for publishing a gallery workspace.
"""

import argparse
import logging
import os
import sys
from typing import List, Optional

import urllib3

from .engine import PublishEngine
from .errors import GalsyncError
from .events import CompleteEvent
from .publish_progress import PublishProgress
from .reporter import Reporter
from .s3_client import S3Client
from .s3_config import S3Config


def setup_logging(verbose: bool) -> logging.Logger:
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO

    logging.basicConfig(
        level=level,
        format='%(asctime)s [%(levelname)s] %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    logging.getLogger('boto3').setLevel(logging.WARNING)
    logging.getLogger('botocore').setLevel(logging.WARNING)
    logging.getLogger('urllib3').setLevel(logging.WARNING)
    logging.getLogger('PIL').setLevel(logging.WARNING)

    return logging.getLogger('galsync')


def get_s3_config(args: argparse.Namespace) -> S3Config:
    """Get S3 configuration from environment and CLI overrides."""
    config = S3Config.from_env()

    if getattr(args, 's3_endpoint', None):
        config.endpoint = args.s3_endpoint
    if getattr(args, 's3_bucket', None):
        config.bucket = args.s3_bucket
    if getattr(args, 's3_region', None):
        config.region = args.s3_region
    if getattr(args, 's3_prefix', None):
        config.prefix = args.s3_prefix
    if getattr(args, 's3_access_key', None):
        config.access_key = args.s3_access_key
    if getattr(args, 's3_secret_key', None):
        config.secret_key = args.s3_secret_key
    if getattr(args, 'distribution_id', None):
        config.distribution_id = args.distribution_id
    if getattr(args, 'static_asset', None):
        config.static_assets = tuple(args.static_asset)
    if getattr(args, 'insecure', False):
        config.verify_ssl = False

    return config


def load_config(args: argparse.Namespace, logger: logging.Logger) -> Optional[S3Config]:
    """Build and validate configuration; logs problems and returns None if invalid."""
    config = get_s3_config(args)
    errors = config.validate()
    if errors:
        for error in errors:
            logger.error(error)
        return None
    if not config.verify_ssl:
        urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)
    return config


def add_storage_arguments(parser: argparse.ArgumentParser) -> None:
    """Add storage configuration arguments to a parser."""
    s3_group = parser.add_argument_group('S3 Storage')
    s3_group.add_argument('--s3-endpoint', help='Override S3_ENDPOINT')
    s3_group.add_argument('--s3-bucket', help='Override S3_BUCKET (name or ARN)')
    s3_group.add_argument('--s3-region', help='Override S3_REGION')
    s3_group.add_argument('--s3-prefix', help='Override S3_PREFIX')
    s3_group.add_argument('--s3-access-key', help='Override S3_ACCESS_KEY')
    s3_group.add_argument('--s3-secret-key', help='Override S3_SECRET_KEY')
    s3_group.add_argument('--insecure', action='store_true', help='Do not verify TLS certificates')

    cdn_group = parser.add_argument_group('CDN')
    cdn_group.add_argument('--distribution-id',
                           help='Override CLOUDFRONT_DISTRIBUTION_ID (id or ARN)')

    parser.add_argument('--static-asset', action='append', metavar='PATH',
                        help='Workspace-relative site file to always publish (repeatable)')


def _preview(engine: PublishEngine, args: argparse.Namespace, config: S3Config,
             logger: logging.Logger):
    progress = None if args.quiet else PublishProgress(show_files=args.show_files, logger=logger)
    plan = engine.preview(args.workspace, config, progress=progress)

    reporter = Reporter()
    reporter.report_warnings(engine.last_warnings, engine.last_thumbnail_results)
    reporter.report_plan(plan, bucket=config.bucket_name, show_files=args.show_files)
    return plan


def cmd_preview(args: argparse.Namespace) -> int:
    """Execute preview command."""
    logger = setup_logging(args.verbose)

    config = load_config(args, logger)
    if config is None:
        return 1

    try:
        _preview(PublishEngine(logger=logger), args, config, logger)
        return 0
    except GalsyncError as e:
        logger.error(f"Preview failed: {e}")
        return 1


def cmd_publish(args: argparse.Namespace) -> int:
    """Execute publish command (preview, confirm, execute)."""
    logger = setup_logging(args.verbose)

    config = load_config(args, logger)
    if config is None:
        return 1

    engine = PublishEngine(logger=logger)
    try:
        plan = _preview(engine, args, config, logger)
    except GalsyncError as e:
        logger.error(f"Preview failed: {e}")
        return 1

    if plan.is_empty:
        return 0

    if not args.yes:
        try:
            answer = input(f"Apply {plan.total_actions} changes? [y/N] ").strip().lower()
        except (KeyboardInterrupt, EOFError):
            answer = ''
            print()
        if answer not in ('y', 'yes'):
            print("Aborted.")
            return 1

    progress = PublishProgress(show_files=args.show_files, logger=logger)
    run = engine.execute(plan.plan_id, on_event=progress)

    while not run.done:
        try:
            run.wait(0.5)
        except KeyboardInterrupt:
            logger.info("Cancel requested; finishing the current file...")
            engine.cancel(plan.plan_id)

    terminal = run.wait()
    if isinstance(terminal, CompleteEvent):
        return 0
    return 130 if terminal is not None and terminal.event == 'cancelled' else 1


def cmd_validate(args: argparse.Namespace) -> int:
    """Check configuration and bucket access."""
    logger = setup_logging(args.verbose)

    config = load_config(args, logger)
    if config is None:
        return 1

    logger.info(f"Configuration: {config!r}")
    try:
        S3Client(config, logger).check_access()
    except GalsyncError as e:
        logger.error(str(e))
        return 1

    logger.info(f"Bucket {config.bucket_name} is accessible")
    return 0


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog='galsync',
        description='Publish a gallery workspace to S3',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Workflow:
  1. Preview:  galsync preview ~/Pictures/site
  2. Publish:  galsync publish ~/Pictures/site

Credentials and target come from S3_* environment variables, overridable per flag.
"""
    )

    parser.add_argument('-v', '--verbose', action='store_true', help='Enable verbose logging')

    subparsers = parser.add_subparsers(dest='command', help='Command to run')

    preview_parser = subparsers.add_parser('preview', help='Show what a publish would change')
    preview_parser.add_argument('workspace', nargs='?', default=os.getcwd(),
                                help='Workspace folder containing galleries.json')
    preview_parser.add_argument('-q', '--quiet', action='store_true', help='Suppress progress output')
    preview_parser.add_argument('--show-files', action='store_true',
                                help='List every file to upload or delete')
    preview_parser.add_argument('-v', '--verbose', action='store_true', help='Enable verbose logging')
    add_storage_arguments(preview_parser)

    publish_parser = subparsers.add_parser('publish', help='Preview and apply changes')
    publish_parser.add_argument('workspace', nargs='?', default=os.getcwd(),
                                help='Workspace folder containing galleries.json')
    publish_parser.add_argument('-y', '--yes', action='store_true', help='Do not ask for confirmation')
    publish_parser.add_argument('-q', '--quiet', action='store_true', help='Suppress progress output')
    publish_parser.add_argument('--show-files', action='store_true',
                                help='Print each file as it is processed')
    publish_parser.add_argument('-v', '--verbose', action='store_true', help='Enable verbose logging')
    add_storage_arguments(publish_parser)

    validate_parser = subparsers.add_parser('validate', help='Check configuration and bucket access')
    validate_parser.add_argument('-v', '--verbose', action='store_true', help='Enable verbose logging')
    add_storage_arguments(validate_parser)

    return parser


def main(args: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = create_parser()
    parsed_args = parser.parse_args(args)

    if not parsed_args.command:
        parser.print_help()
        return 1

    if parsed_args.command == 'preview':
        return cmd_preview(parsed_args)
    elif parsed_args.command == 'publish':
        return cmd_publish(parsed_args)
    elif parsed_args.command == 'validate':
        return cmd_validate(parsed_args)

    return 1


if __name__ == '__main__':
    sys.exit(main())
