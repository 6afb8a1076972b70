"""
BizTrackr AI - small-business bookkeeping dashboard service.

Sales, expenses, employees and inventory CRUD, a derived-metrics dashboard,
spreadsheet export, and LLM-backed business insights.
"""

__version__ = "0.1.0"
