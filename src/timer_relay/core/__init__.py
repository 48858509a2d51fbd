"""Core relay logic — header building, discovery, KPIs, timer control, routing.

This module is framework-agnostic. It has no dependency on MCP, Starlette,
or any server framework; the server module adapts it to HTTP and MCP.
"""
