"""
System Model

Infrastructure topology metadata service: organizations, clusters, nodes and
roles kept in independent stores and composed by coordinators.
"""

__version__ = "0.1.0"
