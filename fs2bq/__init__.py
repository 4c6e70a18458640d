"""
fs2bq - infer warehouse schemas from Firestore collections and copy
documents into BigQuery tables.
"""

__version__ = "0.1.0"
