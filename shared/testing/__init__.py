"""Test helpers: environment seeding and an in-memory Discord API."""
