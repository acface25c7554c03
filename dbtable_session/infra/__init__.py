"""Infrastructure: database access and observability."""
