"""Persona Parlor: dev launcher. Starts the backend with uvicorn."""

import argparse
import logging
import os
from pathlib import Path

import uvicorn
from dotenv import load_dotenv

ROOT = Path(__file__).parent
load_dotenv(ROOT / ".env")

HOST = os.getenv("HOST", "0.0.0.0")
BACKEND_PORT = os.getenv("BACKEND_PORT", "13013")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")


def main():
    parser = argparse.ArgumentParser(description="Persona Parlor dev launcher")
    parser.add_argument("--host", default=HOST, help=f"Bind address (default: {HOST})")
    parser.add_argument("--port", type=int, default=int(BACKEND_PORT),
                        help=f"Port (default: {BACKEND_PORT})")
    parser.add_argument("--characters-dir", type=Path, default=None,
                        help="Character JSON directory (default: ./presets/characters)")
    parser.add_argument("--echo", action="store_true",
                        help="Echo user messages instead of calling Gemini")
    parser.add_argument("--reload", action="store_true", help="Restart on code changes")
    args = parser.parse_args()

    logging.basicConfig(
        level=LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # The app reads its settings from the environment, also under --reload
    if args.characters_dir:
        os.environ["CHARACTERS_DIR"] = str(args.characters_dir.resolve())
    if args.echo:
        os.environ["PARLOR_ECHO_CHAT"] = "1"

    print(f"Starting backend on http://localhost:{args.port} ...")
    uvicorn.run(
        "backend.app:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    main()
