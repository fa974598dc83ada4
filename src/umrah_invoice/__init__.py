"""
Umrah Invoice Tool

Invoice generation for Umrah travel packages: prices hotel, visa, ziyarat and
airline inputs in SAR and PKR, stages generated invoices, stores them in a
document database and exports them to Excel and PDF.
"""

__version__ = "1.0.0"
