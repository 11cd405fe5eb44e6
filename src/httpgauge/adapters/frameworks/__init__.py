"""Framework adapters serving the publication endpoint."""
