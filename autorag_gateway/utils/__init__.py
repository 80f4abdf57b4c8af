"""Utility helpers package for IDs and blob I/O.

Modules here provide saved-answer and document ID generation, safe
path resolution under the blob root, and chunked file streaming.
"""
