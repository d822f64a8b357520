"""
LLM Playground package.

Provides:
- A FastAPI proxy translating completion requests to a local Ollama server
- A terminal playground client that measures latency and token throughput
"""
