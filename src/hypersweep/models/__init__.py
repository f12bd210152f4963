# Copyright (c) Syntropy Systems
"""Pydantic models for hypersweep wire payloads and query results."""
