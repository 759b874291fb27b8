"""HTTP route tables for the todo service."""
