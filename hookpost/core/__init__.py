"""Message limits, normalization, validation and the invalid-endpoint cache."""
