"""
Git access layer: a read-only repository handle built on the git executable.
"""

from zg.git.repository import GitRepository, find_worktree_root, list_worktree_files

__all__ = ['GitRepository', 'find_worktree_root', 'list_worktree_files']
