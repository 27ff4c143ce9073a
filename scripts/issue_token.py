#!/usr/bin/env python3
"""
Issue a development access token.

Signs an HS256 JWT with JWT_SECRET so the upload endpoints can be
exercised locally without the login service.

Usage:
    python scripts/issue_token.py USER_ID
    python scripts/issue_token.py USER_ID --hours 24 --create-video "My clip"

Requires:
    - .env file (or environment) with JWT_SECRET
"""

import sys
from datetime import timedelta
from pathlib import Path

# Add project root to path so we can import our modules
sys.path.insert(0, str(Path(__file__).parent.parent))

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

from src.config.settings import get_settings  # noqa: E402
from src.core.videos.models import Video  # noqa: E402
from src.infrastructure.auth.tokens import issue_access_token  # noqa: E402
from src.infrastructure.database.client import create_database_connection  # noqa: E402
from src.infrastructure.database.repositories.videos import VideoRepository  # noqa: E402


def main():
    import argparse

    parser = argparse.ArgumentParser(description='Issue a development access token')
    parser.add_argument('user_id', help='Value for the token subject')
    parser.add_argument('--hours', type=float, default=1.0, help='Token lifetime in hours')
    parser.add_argument(
        '--create-video',
        metavar='TITLE',
        help='Also create a draft video record owned by the user',
    )
    args = parser.parse_args()

    settings = get_settings()

    if not settings.jwt_secret:
        print("ERROR: JWT_SECRET is not set")
        sys.exit(1)

    token = issue_access_token(
        args.user_id,
        settings.jwt_secret,
        expires_in=timedelta(hours=args.hours),
        algorithm=settings.jwt_algorithm,
        issuer=settings.jwt_issuer,
    )

    if args.create_video:
        if settings.database_mock_mode:
            print("ERROR: --create-video needs a database file (DATABASE_MOCK_MODE is on)")
            sys.exit(1)

        with create_database_connection(path=settings.database_path) as conn:
            video = VideoRepository(conn).create_video(
                Video(user_id=args.user_id, title=args.create_video)
            )
        print(f"Created video: {video.id}", file=sys.stderr)

    print(token)


if __name__ == '__main__':
    main()
