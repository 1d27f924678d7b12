"""Product catalog buckets loaded from packaged JSON."""
