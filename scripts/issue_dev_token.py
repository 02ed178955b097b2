"""
Mint a development access token the way the identity service would.

Usage:
  python scripts/issue_dev_token.py SUBJECT [--email E] [--name N] [--minutes M]

The first request made with the token provisions a student account for
SUBJECT; promote it with PATCH /api/users/{id}/role as an admin.
"""

import argparse
import sys
from pathlib import Path

project_root = Path(__file__).resolve().parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from lms.schemas.auth_schemas import AuthTokenPayload  # noqa: E402
from lms.utils.jwt import create_access_token  # noqa: E402


def main() -> int:
    ap = argparse.ArgumentParser(description="Issue a development JWT for a subject.")
    ap.add_argument("subject")
    ap.add_argument("--email", default=None)
    ap.add_argument("--name", default=None)
    ap.add_argument("--minutes", type=int, default=None)
    args = ap.parse_args()

    token = create_access_token(
        AuthTokenPayload(sub=args.subject, email=args.email, name=args.name),
        expires_minutes=args.minutes,
    )
    print(token)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
