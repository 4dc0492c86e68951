#!/usr/bin/env python3
"""Main entry point for the debate moderation control plane."""

import getpass
import logging
import sqlite3
import sys

from config.settings import get_default_config


def setup_logging(level: str = "INFO"):
    """Configure logging for the web server."""
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%H:%M:%S",
    )

    # Suppress noisy third-party loggers
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


def print_usage():
    """Print usage information."""
    print("Debate Moderation Control Plane")
    print("=" * 40)
    print("   python main.py                          start the web server")
    print("   python main.py --create-admin <name>    create a moderator account")
    print()


def create_admin(username: str) -> int:
    """Create a moderator account, reading the password interactively."""
    from debate_engine.database import DatabaseManager
    from web.auth_database import AuthDatabaseManager
    from web.auth_utils import PasswordUtils

    config = get_default_config()
    db_path = config.persistence.database_path

    # Ensures the schema exists
    DatabaseManager(db_path)
    auth_db = AuthDatabaseManager(db_path)

    if auth_db.username_exists(username):
        print(f"Administrator {username} already exists")
        return 1

    password = getpass.getpass(f"Password for {username}: ")
    if not password or password != getpass.getpass("Repeat password: "):
        print("Passwords are empty or do not match")
        return 1

    try:
        admin_id = auth_db.create_admin(username, PasswordUtils.hash_password(password))
    except sqlite3.IntegrityError:
        print(f"Administrator {username} already exists")
        return 1

    print(f"Created administrator {username} (id {admin_id})")
    return 0


def start_web_server():
    """Start the FastAPI web server."""
    config = get_default_config()
    setup_logging(config.server.log_level)

    import uvicorn
    from web.api import create_app

    print(f"🔌 Moderator WebSocket: ws://localhost:{config.server.port}/v1/ws/admin")
    print(f"📡 Audience feed: ws://localhost:{config.server.port}/v1/ws/debate/{{id}}")

    uvicorn.run(
        create_app(config),
        host=config.server.host,
        port=config.server.port,
        log_level=config.server.log_level.lower(),
    )


def main():
    """Main entry point."""
    if "--help" in sys.argv or "-h" in sys.argv:
        print_usage()
    elif "--create-admin" in sys.argv:
        index = sys.argv.index("--create-admin")
        if index + 1 >= len(sys.argv):
            print_usage()
            sys.exit(2)
        setup_logging()
        sys.exit(create_admin(sys.argv[index + 1]))
    else:
        start_web_server()


if __name__ == "__main__":
    main()
