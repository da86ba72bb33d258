"""DeliveryDataHub domain layer.

Domain modules hold the dimension resolution logic. They may depend on the
standard library, pandas, pydantic and the shared infrastructure helpers;
they must never import from ``delivery_data_hub.io``. Sources are injected
through the ``DimensionSource`` protocol in ``domain.protocols``.
"""
