"""Core engine layer: data definitions, events, entities and collaborator contracts."""
