"""Core building blocks for readyexec.

This package provides the exception hierarchy and the value-or-error
primitive that ready futures are built on.
"""
