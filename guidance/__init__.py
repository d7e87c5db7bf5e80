"""Pastoral guidance service: safety pipeline, escalation alerts and HTTP API."""
