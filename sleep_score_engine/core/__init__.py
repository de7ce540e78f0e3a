"""Framework-agnostic core of the sleep score engine: vocabularies, errors, validation and scoring."""
