"""CLI for database setup, account management and content retention."""
import argparse
import sys

from content_organiser.core.config import get_settings
from content_organiser.core.database import get_session_local, init_db
from content_organiser.core.exceptions import ContentValidationError
from content_organiser.core.logging_config import LoggingConfig
from content_organiser.models.profile import UserRole
from content_organiser.services.auth_service import AuthService
from content_organiser.services.content_repository import ContentRepository

ROLE_CHOICES = [r.value for r in UserRole]


def cmd_init_db(args):
    """Create any missing tables."""
    init_db()
    print("Database tables are up to date")
    return 0


def cmd_create_user(args):
    """Create an account with a profile row."""
    init_db()
    with get_session_local()() as db:
        try:
            user = AuthService(db).register_user(
                args.email,
                args.password,
                role=args.role,
                display_name=args.display_name,
            )
        except ValueError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1
        print(f"Created user {user.email} ({args.role})")
    return 0


def cmd_set_role(args):
    """Change the role of an existing account."""
    with get_session_local()() as db:
        try:
            profile = AuthService(db).set_role(args.email, args.role)
        except ValueError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1
        print(f"Role for {args.email} is now {profile.role}")
    return 0


def cmd_cleanup(args):
    """Delete content items older than the retention window."""
    keep_days = args.keep_days or get_settings().cleanup_default_keep_days
    with get_session_local()() as db:
        try:
            result = ContentRepository(db).cleanup(keep_days)
        except ContentValidationError as e:
            print(f"Error: {e.message}", file=sys.stderr)
            return 1
    print(f"Deleted {result['deleted_items']} item(s) created before {result['cutoff']}")
    return 0


def build_parser():
    p = argparse.ArgumentParser(prog="content_organiser")
    sub = p.add_subparsers(dest="cmd")
    s = sub.add_parser("init-db", help="Create database tables")
    s.set_defaults(func=cmd_init_db)
    s = sub.add_parser("create-user", help="Create a user account")
    s.add_argument("email")
    s.add_argument("password")
    s.add_argument("--role", choices=ROLE_CHOICES, default=UserRole.VIEWER.value)
    s.add_argument("--display-name", dest="display_name", default=None)
    s.set_defaults(func=cmd_create_user)
    s = sub.add_parser("set-role", help="Change a user's role")
    s.add_argument("email")
    s.add_argument("role", choices=ROLE_CHOICES)
    s.set_defaults(func=cmd_set_role)
    s = sub.add_parser("cleanup", help="Delete old content items")
    s.add_argument("--keep-days", dest="keep_days", type=int, default=None,
                   help="Keep items created within this many days (default from settings)")
    s.set_defaults(func=cmd_cleanup)
    return p


def main(argv=None):
    LoggingConfig.configure()
    p = build_parser()
    args = p.parse_args(argv)
    if not hasattr(args, "func"):
        p.print_help()
        return 2
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
