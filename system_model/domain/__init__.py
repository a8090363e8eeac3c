"""
Domain Layer - Topology Entities

This layer contains:
- Entities: organizations, clusters, nodes and roles
- Enumerations describing their status and lifecycle
- Update requests applied to entities in place

No external dependencies allowed in this layer.
"""
