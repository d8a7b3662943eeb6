"""
Dev Token Script

Mints an access token signed with the configured JWT secret, carrying the
same claims the identity service puts in its tokens. Useful to call the API
locally without running the identity service:

    python scripts/issue_dev_token.py --sub user-1 --username pilot
    curl -X POST localhost:8001/api/auth/cookies \\
         -H 'Content-Type: application/json' \\
         -d '{"accessToken": "<token>"}'

Refuses to run when ENVIRONMENT=production.
"""

import argparse
import os
import sys
from datetime import timedelta

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from dotenv import load_dotenv

load_dotenv()

from config import get_settings
from services.auth_service import create_access_token


def build_claims(args) -> dict:
    claims = {"sub": args.sub, "username": args.username}
    if args.email:
        claims["email"] = args.email
    if args.require_duo:
        claims["requiredDuo"] = True
        claims["duoVerified"] = args.duo_verified
    return claims


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Mint a local development access token")
    parser.add_argument("--sub", required=True, help="User id placed in the sub claim")
    parser.add_argument("--username", default="dev")
    parser.add_argument("--email", default=None)
    parser.add_argument("--require-duo", action="store_true", help="Set requiredDuo=true")
    parser.add_argument("--duo-verified", action="store_true", help="Set duoVerified=true (with --require-duo)")
    parser.add_argument("--hours", type=float, default=24, help="Token lifetime in hours")
    args = parser.parse_args(argv)

    settings = get_settings()
    if settings.is_production:
        print("Refusing to mint tokens in production", file=sys.stderr)
        return 1

    token = create_access_token(build_claims(args), expires_delta=timedelta(hours=args.hours))
    print(token)
    return 0


if __name__ == "__main__":
    sys.exit(main())
