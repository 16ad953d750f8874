"""
Repository Maintainability Index.

Scores a repository across six maintainability dimensions and optionally
adds LLM commentary to the report.
"""

__version__ = "1.0.0"
