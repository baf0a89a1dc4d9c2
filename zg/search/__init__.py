"""
Search collection: regex matching over the files of a working tree.
"""

from zg.search.collector import SearchCollector, compile_pattern, walk_files

__all__ = ['SearchCollector', 'compile_pattern', 'walk_files']
