"""WSGI entrypoint for the orsmap API; also runnable directly for local development."""
from __future__ import annotations

import logging
import os
import sys
from pathlib import Path

if __package__ in {None, ""}:
    project_root = Path(__file__).resolve().parents[1]
    sys.path.insert(0, str(project_root))
    from orsmap import create_app  # type: ignore  # noqa: E402
else:
    from . import create_app

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)

app = create_app()


if __name__ == "__main__":
    app.run(host="0.0.0.0", port=8000, debug=app.config.get("FLASK_ENV") == "development")
