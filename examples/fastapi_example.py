"""Example FastAPI application exporting CloudWatch metrics.

Run with:
    EXPORTER_CONFIG=examples/config.yml uvicorn examples.fastapi_example:app

Endpoints:
    /metrics                   - Prometheus text format (every rule)
    /metrics?namespace=<ns>    - Only rules of one CloudWatch namespace
    /-/reload                  - POST to re-read the configuration file
"""

import logging
import os

from fastapi import FastAPI

from cloudwatch_exporter.adapters.frameworks.fastapi import create_exporter_router
from cloudwatch_exporter.adapters.reload_signal import install_reload_signal_handler
from cloudwatch_exporter.app import create_exporter

logging.basicConfig(level=logging.INFO)

collector = create_exporter(os.environ.get("EXPORTER_CONFIG", "config.yml"))

# kill -HUP <pid> reloads just like POST /-/reload
install_reload_signal_handler(collector.store)

app = FastAPI(title="CloudWatch Exporter")
app.include_router(create_exporter_router(collector, store=collector.store))
