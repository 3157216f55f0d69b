#!/usr/bin/env python3
"""
Run the agency metrics API.
"""

import os
import sys


def main() -> None:
    # Make src importable
    repo_root = os.path.dirname(__file__)
    sys.path.insert(0, os.path.join(repo_root, "src"))

    import uvicorn

    from config.settings import get_settings, validate_startup_config

    settings = get_settings()
    validate_startup_config(settings, exit_on_failure=True)

    uvicorn.run(
        "web.app:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug and not settings.is_production,
    )


if __name__ == "__main__":
    main()
