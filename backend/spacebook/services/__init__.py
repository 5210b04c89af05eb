"""Service layer: pure booking engine modules and their persistence collaborators."""
