"""
Extend a store owner's subscription (developer tooling).

Logs in as a developer account, computes the new period and sends it to
the `subscriptions-update-user` edge function. With --list, prints every
user's subscription instead.
"""

import argparse
import getpass
import os
import sys
from pathlib import Path

# Add parent directory to path so we can import from services
sys.path.insert(0, str(Path(__file__).parent.parent))

from domain.errors import PosError
from domain.formatting import format_long_date_id
from services import subscription_service
from services.preferences import InMemoryPreferenceStore
from services.session import SessionState


def main() -> int:
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        description="Extend a user's subscription by whole months",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Extend by 6 months
  python extend_subscription.py --email dev@idcashier.my.id 0b6f1c0e-1f2a-4d8e-a3b4-5c6d7e8f9a0b 6

  # List every user's subscription
  python extend_subscription.py --email dev@idcashier.my.id --list
        """
    )

    parser.add_argument("user_id", nargs="?", help="Id of the user whose subscription is extended")
    parser.add_argument("months", nargs="?", type=int, help="Number of months to add")
    parser.add_argument("--email", required=True, help="Developer account email")
    parser.add_argument(
        "--password",
        default=os.getenv("IDCASHIER_PASSWORD"),
        help="Account password (default: IDCASHIER_PASSWORD, otherwise prompted)"
    )
    parser.add_argument("--list", action="store_true", help="List all subscriptions and exit")

    args = parser.parse_args()
    if not args.list and (args.user_id is None or args.months is None):
        parser.error("user_id and months are required unless --list is given")

    password = args.password or getpass.getpass("Password: ")
    # developer sessions are not persisted
    session = SessionState(InMemoryPreferenceStore())

    try:
        session.sign_in(args.email, password)

        if args.list:
            for entry in subscription_service.list_all_subscriptions(session.token):
                print(entry)
            return 0

        view = subscription_service.extend_subscription(session.token, args.user_id, args.months)
        print("[SUCCESS] Subscription extended")
        print(f"  User:  {args.user_id}")
        print(f"  Start: {format_long_date_id(view.start_date)}")
        print(f"  End:   {format_long_date_id(view.end_date)}")
        return 0

    except PosError as e:
        print(f"[ERROR] {e.title}: {e.message}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
