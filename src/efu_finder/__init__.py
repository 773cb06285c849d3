"""
EFU Finder - Core Package

A search, sort and pagination engine for EFU file list exports, the CSV
listings written by the Everything search tool.
"""

__version__ = "0.1.0"
__author__ = "EFU Finder Team"
