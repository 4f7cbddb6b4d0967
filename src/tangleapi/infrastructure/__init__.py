"""Infrastructure layer — the node collaborator and its seeding helpers."""
