"""
Rendering module for zg: terminal output of ranked matches.
"""

from zg.rendering.presenter import MatchPresenter

__all__ = ['MatchPresenter']
