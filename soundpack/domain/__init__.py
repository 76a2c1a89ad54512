"""
Domain Layer

Capability tokens, the asset catalog and storage resolution, and the
interfaces of the persistence and mail collaborators.
"""
