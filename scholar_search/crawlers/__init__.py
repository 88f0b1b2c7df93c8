"""HTTP transport, Google Scholar fetch/parse, and alternate sources."""
