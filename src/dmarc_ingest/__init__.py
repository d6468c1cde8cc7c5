"""
DMARC Ingest

A tool for loading DMARC aggregate XML reports into a relational
database, one report header plus one row per evaluated sender.
"""

__version__ = '1.0.0'
__author__ = 'DMARC Ingest Team'
