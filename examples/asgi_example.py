"""Example of the exporter served by uvicorn without FastAPI.

Run with:
    python examples/asgi_example.py examples/config.yml
"""

import logging
import sys

import uvicorn

from cloudwatch_exporter.adapters.frameworks.asgi import create_asgi_app
from cloudwatch_exporter.app import create_exporter

DEFAULT_PORT = 9042


def main() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    config_path = sys.argv[1] if len(sys.argv) > 1 else "config.yml"
    collector = create_exporter(config_path)
    app = create_asgi_app(collector, store=collector.store)
    uvicorn.run(app, host="0.0.0.0", port=DEFAULT_PORT)


if __name__ == "__main__":
    main()
