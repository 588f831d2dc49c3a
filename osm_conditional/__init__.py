"""
osm-conditional: evaluation of OSM conditional access tags.

Decides whether ways are conditionally permitted or restricted based on
tags such as "access:conditional=no @ (Oct-May)".
"""

__version__ = "0.1.0"
