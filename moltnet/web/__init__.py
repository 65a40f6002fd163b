"""Web module - HTTP trigger endpoints."""
