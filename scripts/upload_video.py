#!/usr/bin/env python3
"""
Upload Video - Command Line Script

Creates a video on ByteArk Stream and uploads a local file into it.
Credentials come from the environment or a .env file:

    BYTEARK_STREAM_ACCESS_TOKEN=...
    BYTEARK_STREAM_DEFAULT_PROJECT_KEY=...

Usage:
    python scripts/upload_video.py ./resources/drone-view.mp4
    python scripts/upload_video.py video.mp4 --title "Sample video" --tag drone --tag demo
    python scripts/upload_video.py video.mp4 --mock     # Dry run, no network
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from dotenv import load_dotenv

from stream_upload import StreamUploadError, StreamUploadFactory

logger = logging.getLogger(__name__)


def parse_args(argv=None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Create a ByteArk Stream video and upload a local file into it",
        epilog="""
Examples:
  %(prog)s video.mp4                          # Title defaults to file name
  %(prog)s video.mp4 --title "Sample video"   # Custom title
  %(prog)s video.mp4 --mock                   # Simulated upload
        """,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument("file", type=Path, help="Video file to upload")

    parser.add_argument("--title", help="Video title (default: file name)")

    parser.add_argument(
        "--tag",
        dest="tags",
        action="append",
        help="Video tag (repeatable)",
    )

    parser.add_argument(
        "--project-key",
        help="Target project (default: BYTEARK_STREAM_DEFAULT_PROJECT_KEY)",
    )

    parser.add_argument(
        "--preset-id",
        help="Transcoding preset (default: BYTEARK_STREAM_DEFAULT_PRESET_ID)",
    )

    parser.add_argument(
        "--settings",
        type=Path,
        help="YAML file with non-secret settings (default: config/stream.yaml)",
    )

    parser.add_argument(
        "--mock",
        action="store_true",
        help="Use simulated registrar and transfer (no network)",
    )

    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    return parser.parse_args(argv)


async def run_upload(args: argparse.Namespace) -> str:
    """
    Build the service and upload one file.

    Returns:
        Key of the uploaded video
    """
    service = StreamUploadFactory.create_service(
        mode="mock" if args.mock else "stream",
        settings_path=args.settings,
    )

    return await service.create_and_upload_video(
        local_file_path=args.file,
        title=args.title,
        tags=args.tags,
        project_key=args.project_key,
        preset_id=args.preset_id,
    )


def main(argv=None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
    )

    load_dotenv()

    logger.info(f"Uploading video from {args.file}")

    try:
        video_key = asyncio.run(run_upload(args))
    except StreamUploadError as e:
        logger.error(f"❌ Upload failed ({type(e).__name__}, stage: {e.stage.value}): {e}")
        if e.was_registered:
            logger.error(f"Video {e.video_key} was created but has no uploaded file")
        return 1

    logger.info(f"✅ Uploaded video key: {video_key}")
    print(video_key)
    return 0


if __name__ == "__main__":
    sys.exit(main())
