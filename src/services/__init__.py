"""Toreca Tracker — Datastore-backed services called by the API routes."""
