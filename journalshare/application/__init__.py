"""Application layer: use cases, services, DTOs and store ports."""
