"""
Project finance tracker backend: password-gated project workspaces with
income, expenses, call-booth contacts and verified contributions.
"""

__version__ = "1.0.0"
