"""Toreca Tracker — HTTP API layer (FastAPI routers, dependencies, envelopes)."""
