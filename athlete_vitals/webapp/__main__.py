"""Run the dashboard with Flask's development server: `python -m athlete_vitals.webapp`."""

from __future__ import annotations

import os

from ..env import env_flag, get_env
from . import create_app


def main() -> None:
    app = create_app()
    app.run(
        host=get_env("HOST", "127.0.0.1"),
        port=int(get_env("PORT") or os.environ.get("PORT", 5001)),
        debug=env_flag("DEBUG") or bool(os.environ.get("FLASK_DEBUG")),
    )


if __name__ == "__main__":
    main()
