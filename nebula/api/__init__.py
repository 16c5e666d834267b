"""Provider client and HTTP surface."""
