"""
ledgerlink - bank statement import and record linking.

Parses statement files with user defined column profiles, detects rows
that were imported before and proposes transfer and duplicate links
between records.
"""

__version__ = "0.1.0"
