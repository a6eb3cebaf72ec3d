"""
services package

Submodules are imported directly, e.g.:

    from tourguide.services.enrichment import enrich_places
"""

__all__: list[str] = []
