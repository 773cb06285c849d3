"""
Processing tools for EFU Finder.

This module contains the stages an export passes through: CSV reading, record
normalization, query planning, filtering and sorting, pagination, and
display formatting.
"""
