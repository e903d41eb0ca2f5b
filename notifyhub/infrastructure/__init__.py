"""Infrastructure services: storage adapters, database and wire formats."""
