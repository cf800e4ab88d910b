"""Run a gate-protected app: ``python -m supabase_gate``.

Configuration comes from the environment (see ``GateSettings.from_env``).
"""

from __future__ import annotations

import argparse

import uvicorn

from .app import create_app
from .observability.logging import configure_logging
from .settings import GateSettings


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description='Run the supabase gate app')
    parser.add_argument('--host', default='127.0.0.1')
    parser.add_argument('--port', type=int, default=8000)
    parser.add_argument('--log-level', default=None)
    args = parser.parse_args(argv)

    configure_logging(level=args.log_level)
    app = create_app(GateSettings.from_env())
    uvicorn.run(app, host=args.host, port=args.port, log_config=None)


if __name__ == '__main__':
    main()
