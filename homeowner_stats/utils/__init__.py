"""Shared utilities: configuration, logging, schemas, errors, storage and messaging."""
