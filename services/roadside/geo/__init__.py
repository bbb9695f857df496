"""
Geometry handling shared by both stores.

Public API:
    from services.roadside.geo.codec import GeometryCodec, Geometry, InvalidGeometry
    from services.roadside.geo.distance import haversine_m, distance_to_geometry_m
"""
