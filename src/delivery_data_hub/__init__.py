"""
DeliveryDataHub - Dimension entity resolution for restaurant-delivery data.

Collapses monthly, soft-deleted, multi-portal dimension snapshots into one
canonical entity per real-world company, brand, area and restaurant, keeping
every source identifier available for fact-table joins.
"""

__version__ = "0.1.0"
