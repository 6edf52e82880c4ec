"""Infrastructure adapters: settings, logging, storage, cache and security."""
