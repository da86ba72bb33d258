"""Command-line interface for DeliveryDataHub."""
