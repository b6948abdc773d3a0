"""
Mapping species occurrences against protected areas and modelled species ranges.
"""

__version__ = "0.1.0"
