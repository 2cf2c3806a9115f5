"""
Browser Extension Risk Analyzer
Static risk assessment for packaged Chrome/Edge extensions (CRX or ZIP)
"""

__version__ = "0.1.0"
