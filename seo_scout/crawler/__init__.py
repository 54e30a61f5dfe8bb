"""Crawl frontier, fetcher and data models."""
