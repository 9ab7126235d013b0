"""Multi-tenant project tracker API with revocable bearer tokens."""
