"""
BlockGraph - CLI Package
==========================
Typer command line interface.
"""
