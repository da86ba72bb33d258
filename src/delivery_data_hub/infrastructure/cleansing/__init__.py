"""Text cleansing for dimension grouping keys (names and street addresses)."""
