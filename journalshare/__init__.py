"""journalshare: shared business journals on a transactional document store."""
