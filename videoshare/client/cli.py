"""
Command-line publisher: sign in, upload a video straight to ImageKit, then publish its metadata.

    videoshare publish clip.mp4 --title "My Clip" --email me@example.com --password secret
    videoshare list
"""
import argparse
import asyncio
import logging
import sys

from videoshare.config import get_settings
from videoshare.core.errors import VideoShareError
from videoshare.client.api_client import VideoApiClient
from videoshare.client.upload_client import LocalFile, UploadClient


async def publish(args: argparse.Namespace) -> dict:
    settings = get_settings()
    async with VideoApiClient(args.api_url, timeout=settings.http_timeout_seconds) as api:
        await api.login(args.email, args.password)
        async with UploadClient(
            api.grant_endpoint,
            args.public_key or settings.imagekit_public_key,
            upload_url=settings.imagekit_upload_url,
            folder=settings.upload_folder,
            max_size_bytes=settings.max_upload_size_bytes,
            timeout=settings.http_timeout_seconds,
        ) as uploader:
            result = await uploader.submit_file(
                LocalFile(args.file),
                file_type="video",
                on_progress=lambda p: print(f"\rUploading... {p}%", end="", file=sys.stderr, flush=True),
            )
        print(file=sys.stderr)
        return await api.create_video(
            title=args.title,
            description=args.description,
            video_url=result.url,
            thumbnail_url=result.thumbnail_url or result.url,
        )


async def register(args: argparse.Namespace) -> None:
    async with VideoApiClient(args.api_url) as api:
        await api.register(args.email, args.password)


async def list_all(args: argparse.Namespace) -> list[dict]:
    async with VideoApiClient(args.api_url) as api:
        return await api.list_videos()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="videoshare", description="Upload and browse VideoShare videos.")
    parser.add_argument("--api-url", default="http://localhost:8000", help="VideoShare API base URL")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("publish", help="Upload a video file and publish it")
    p.add_argument("file")
    p.add_argument("--title", required=True)
    p.add_argument("--description", default="")
    p.add_argument("--email", required=True)
    p.add_argument("--password", required=True)
    p.add_argument("--public-key", default=None, help="ImageKit public key (default: IMAGEKIT_PUBLIC_KEY)")

    r = sub.add_parser("register", help="Create an account")
    r.add_argument("--email", required=True)
    r.add_argument("--password", required=True)

    sub.add_parser("list", help="List videos, newest first")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=get_settings().log_level.upper(), format="%(levelname)s %(name)s: %(message)s")
    try:
        if args.command == "publish":
            video = asyncio.run(publish(args))
            print(f"Video uploaded successfully! {video['id']} {video['videoUrl']}")
        elif args.command == "register":
            asyncio.run(register(args))
            print("User created!")
        else:
            for video in asyncio.run(list_all(args)):
                print(f"{video['createdAt']}  {video['title']}  {video['videoUrl']}")
    except VideoShareError as e:
        print(f"Error: {e.public_message}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
