"""Shared task board: FastAPI backend and session client.

Provides the websocket sync channel that keeps every connected session on
one canonical board, the write-behind JSON persistence, and the
translation endpoint backed by Mistral AI.
"""
