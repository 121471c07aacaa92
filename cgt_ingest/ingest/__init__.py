"""Source ingestion: CSV/email helpers and per-broker adapters."""
