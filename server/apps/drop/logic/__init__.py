"""Business logic layer for drop app.

This package contains the three storage operations:
- Upload with normalization, validation and exclusive creation
- Listing of the storage directory
- Deletion by name

Views translate HTTP requests into these calls and encode the results.
"""
