"""
CapCut editor automation: browser session, selectors, and the render steps.

Usage:
    from agents import CapCutBrowser, CapCutRenderAgent, ElementLocator
"""

from agents.capcut_agent import CapCutRenderAgent
from agents.capcut_browser import CapCutBrowser
from agents.capcut_selectors import EditorSelectors, load_selectors
from agents.element_locator import ElementLocator

__all__ = [
    "CapCutRenderAgent",
    "CapCutBrowser",
    "EditorSelectors", "load_selectors",
    "ElementLocator",
]
