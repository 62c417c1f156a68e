"""
DiskTree - Core Package

Local filesystem service exposing stat/read/write/move/copy/delete operations
over a directory tree, plus a recursive fuzzy file search that honours
gitignore rules.
"""

__version__ = "0.1.0"
__author__ = "DiskTree Team"
