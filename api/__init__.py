"""Read-only HTTP API over the processed detection artifacts."""
