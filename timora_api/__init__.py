"""Timora HTTP API.

Run with: uvicorn timora_api.main:app --port 8100
"""
