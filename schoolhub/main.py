# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Server entry point.

Example:
    $ schoolhub-api
"""

import uvicorn

from schoolhub.core.config import get_settings


def run() -> None:
    """Run the API server with uvicorn using the API settings."""
    settings = get_settings()

    uvicorn.run(
        "schoolhub.api.app:create_app",
        factory=True,
        host=settings.api.host,
        port=settings.api.port,
        workers=1 if settings.api.reload else settings.api.workers,
        reload=settings.api.reload,
        log_config=None,
    )


if __name__ == "__main__":
    run()
