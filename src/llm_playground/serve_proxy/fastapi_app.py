"""FastAPI proxy in front of a local Ollama server.

Endpoints:
- GET /health
- POST /v1/completions  { "model": "...", "prompt": "...", "max_tokens": 150 }

Every response carries open CORS headers; OPTIONS is answered with an empty
200 before routing. Errors are returned as plain text.
"""
from __future__ import annotations
import logging

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.responses import PlainTextResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from llm_playground.common.logging_setup import setup_logging
from llm_playground.common.schema import CompletionResponse
from llm_playground.serve_proxy.translate import OLLAMA_GENERATE_URL, CompletionProxy, ProxyError

LOGGER = logging.getLogger("llm_playground.proxy.app")
setup_logging()

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}

app = FastAPI(title="LLM Playground Proxy")


def get_proxy() -> CompletionProxy:
    return CompletionProxy()


@app.middleware("http")
async def cors(request: Request, call_next) -> Response:  # noqa: ANN001
    if request.method == "OPTIONS":
        response = Response(status_code=200)
    else:
        try:
            response = await call_next(request)
        except Exception as e:
            LOGGER.error("Unhandled error on %s %s: %s", request.method, request.url.path, e)
            response = PlainTextResponse("Internal Server Error", status_code=500)
    response.headers.update(CORS_HEADERS)
    return response


@app.exception_handler(StarletteHTTPException)
async def plain_text_error(request: Request, exc: StarletteHTTPException) -> PlainTextResponse:
    return PlainTextResponse(str(exc.detail), status_code=exc.status_code, headers=exc.headers)


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok", "upstream": OLLAMA_GENERATE_URL}


@app.post("/v1/completions", response_model=CompletionResponse)
async def completions(request: Request, proxy: CompletionProxy = Depends(get_proxy)) -> CompletionResponse:  # noqa: B008
    body = await request.body()
    try:
        return await proxy.complete(body)
    except ProxyError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail) from e
