"""
So Quotable Backend — Middleware Package
=========================================

Request → [Rate Limit] → [Request ID] → [Logging] → [CORS] → [GZip] → Route

Responses travel back through the same chain in reverse, so the request id
header and the access log line see the final status code.
"""
