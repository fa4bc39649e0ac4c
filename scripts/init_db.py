from __future__ import annotations

import logging

from wellness_tracker.db import Database
from wellness_tracker.logging_utils import configure_logging

logger = logging.getLogger("wellness_tracker.init_db")


def main() -> None:
    configure_logging()
    with Database() as db:
        info = db.describe()
    logger.info("Schema ready at %s", info["sqlite_path"] or db.url)
    for table, rows in info["tables"].items():
        print(f"{table}: {rows}")


if __name__ == "__main__":
    main()
