"""Run transcribe-server under uvicorn."""

import argparse
from pathlib import Path

import uvicorn

from transcribe_server.api.main import create_app
from transcribe_server.config import get_config, resolve_port


def main() -> None:
    parser = argparse.ArgumentParser(description="Audio transcription server")
    parser.add_argument("--config", type=Path, help="Path to config.yaml")
    parser.add_argument("--host", help="Bind address (overrides server.host)")
    parser.add_argument("--port", type=int, help="Listen port (overrides PORT / server.port)")
    args = parser.parse_args()

    config = get_config(args.config)
    host = args.host or config.get("server", "host", default="0.0.0.0")
    port = args.port or resolve_port(config)

    # Logging is configured in the app lifespan
    uvicorn.run(create_app(config), host=host, port=port, log_config=None)


if __name__ == "__main__":
    main()
