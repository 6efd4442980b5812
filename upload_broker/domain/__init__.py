"""Domain layer: protocol model, upload slots and collaborator contracts."""
