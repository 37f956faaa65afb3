# backend/start.py
import os
import socket
import sys

import uvicorn

# DATABASE_URL must be set before command_ops.db is imported
if not os.getenv("DATABASE_URL"):
    base_dir = os.path.dirname(os.path.abspath(__file__))
    db_path = os.path.join(base_dir, "command_ops.db")
    os.environ["DATABASE_URL"] = f"sqlite:///{db_path}"
    print(f"[INFO] Using SQLite database at: {db_path}")

from command_ops.db import Base, engine  # noqa: E402
from command_ops import models  # noqa: E402,F401
from command_ops.main import app as fastapi_app  # noqa: E402


def find_free_port(start_port=8000, max_attempts=10):
    """Find a free port starting from start_port"""
    for port in range(start_port, start_port + max_attempts):
        try:
            with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
                s.bind(("127.0.0.1", port))
                return port
        except OSError:
            continue
    raise RuntimeError(f"Could not find a free port in range {start_port}-{start_port + max_attempts}")


if __name__ == "__main__":
    if engine.dialect.name == "sqlite":
        # local file db: no alembic run, create what's missing
        Base.metadata.create_all(bind=engine)

    try:
        port = find_free_port(int(os.getenv("PORT", "8000")))
    except RuntimeError:
        print("[ERROR] No free ports available")
        sys.exit(1)

    uvicorn.run(fastapi_app, host="127.0.0.1", port=port, reload=False)
