"""Startup seeding of default collections.

This package populates empty collections with fixed default records
and derives the works collection from stored contracts.
"""
