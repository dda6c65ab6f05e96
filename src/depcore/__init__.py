"""
Modules:
annotator  - builds token tables from spaCy parses
dbfutil    - small shared utilities and the common exception base
logging    - predefined logging configurations
tokenindex - indexed, read-only table of dependency-parsed tokens
"""
