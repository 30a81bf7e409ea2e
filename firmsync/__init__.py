"""
FirmSync
Document type detection and agent workflow assignment for law firms
"""

__version__ = '1.0.0'
