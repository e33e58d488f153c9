"""Infrastructure: document store backends."""
