"""Application services: the write side of the catalog and login."""
