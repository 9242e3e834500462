"""HTTP API for the exchange engine."""
