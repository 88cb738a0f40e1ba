"""Main entry point for the Nova application runtime."""
from __future__ import annotations

import asyncio
import sys

from dotenv import load_dotenv

from app.startup import run_application


def main(argv=None) -> int:
    """Boot the application, record it in the application log, terminate."""
    # Load .env from the working directory so configuration sees its variables
    load_dotenv()

    app = run_application(argv)
    try:
        asyncio.run(
            app.make("logger").info(
                "Application booted",
                {"env": app.environment(), "version": app.version},
            )
        )
    finally:
        app.terminate()
    return 0


if __name__ == "__main__":
    sys.exit(main())
