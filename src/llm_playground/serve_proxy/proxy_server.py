"""Run the completions proxy under uvicorn.

Listens on 0.0.0.0:8000. PROXY_HOST and PROXY_PORT are local-development
overrides only.
"""
from __future__ import annotations
import logging
import os

import uvicorn

from llm_playground.common.logging_setup import setup_logging
from llm_playground.serve_proxy.fastapi_app import app

LOGGER = logging.getLogger("llm_playground.proxy.server")


def main() -> None:
    setup_logging()
    host = os.getenv("PROXY_HOST", "0.0.0.0")
    port = int(os.getenv("PROXY_PORT", "8000"))
    LOGGER.info("Backend running on http://%s:%s", host, port)
    # uvicorn logs and exits non-zero if the listener cannot bind.
    uvicorn.run(app, host=host, port=port, log_config=None)


if __name__ == "__main__":
    main()
