import argparse
import getpass
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from userbase.application import build_database, build_service
from userbase.config import load_settings
from userbase.errors import UserbaseError
from userbase.hashing import MAX_PASSWORD_BYTES, password_fits
from userbase.schemas import CreateUserRequest, PASSWORD_MIN_LENGTH


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Create a userbase user")
    parser.add_argument("username", help="Unique login name")
    parser.add_argument("email", help="Unique email address")
    parser.add_argument(
        "--config",
        dest="config_path",
        default=None,
        help="Path to config.yaml (defaults to USERBASE_CONFIG or ./config.yaml)",
    )
    return parser.parse_args()


def prompt_for_password() -> str:
    for _ in range(3):
        password = getpass.getpass("Password: ")
        confirm = getpass.getpass("Confirm password: ")
        if password != confirm:
            print("Passwords do not match. Try again.", file=sys.stderr)
            continue
        if len(password) < PASSWORD_MIN_LENGTH:
            print(f"Password must be at least {PASSWORD_MIN_LENGTH} characters long.", file=sys.stderr)
            continue
        if not password_fits(password):
            print(f"Password must not exceed {MAX_PASSWORD_BYTES} bytes.", file=sys.stderr)
            continue
        return password
    raise SystemExit("Failed to set password after three attempts.")


def main() -> int:
    args = parse_args()
    password = prompt_for_password()

    settings = load_settings(Path(args.config_path) if args.config_path else None)
    try:
        service = build_service(build_database(settings))
        request = CreateUserRequest(username=args.username, email=args.email, password=password)
        user = service.create_user(request)
    except (ValueError, UserbaseError) as exc:  # validation, duplicates, storage
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    print(f"Created user #{user.id}: {user.username} <{user.email}>")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
