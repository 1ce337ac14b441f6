"""Core domain: rule model, caches and the scrape engine."""
