"""Orchestration runtime: loading, execution and reporting."""
