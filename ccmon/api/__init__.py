"""ccmon API layer: Prometheus client, wire schemas, query construction and HTTP routes."""
