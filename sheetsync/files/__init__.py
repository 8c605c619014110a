"""pandas-backed file adapters (raw rows in, exported rows out)."""
