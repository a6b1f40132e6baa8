"""Initial setup: create the data directory, apply migrations and store base options."""
import argparse
from pathlib import Path

from taskboard.database import run_migrations, session_scope
from taskboard.services.app_config import ApplicationConfig


def main() -> None:
    parser = argparse.ArgumentParser(description="Initialise the notification database")
    parser.add_argument("--application-url", help="Public base URL used in email links")
    parser.add_argument("--language", help="Default application language, e.g. fr_FR")
    args = parser.parse_args()

    data_dir = Path("data")
    data_dir.mkdir(exist_ok=True)
    run_migrations()

    with session_scope() as db:
        config = ApplicationConfig(db)
        if args.application_url:
            config.set("application_url", args.application_url)
        if args.language:
            config.set("application_language", args.language)

    print("Database initialised at", data_dir)


if __name__ == "__main__":
    main()
