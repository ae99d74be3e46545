"""Build plan exporters (JSON, DOT)."""
