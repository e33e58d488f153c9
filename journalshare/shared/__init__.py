"""Cross-layer helpers: field mutation sentinels, results, time and id utilities."""
