"""Parsing, fetching and pipeline stages of freeze-dry."""
