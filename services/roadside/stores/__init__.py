"""
Route and recommended-stop stores.

Two interchangeable backends behind the RouteStore / StopStore contracts:
  postgis -- asyncpg + PostGIS geography distance (production)
  memory  -- in-process, spherical distance (local dev, tests)

Public API:
    from services.roadside.stores.factory import Stores, build_stores
    from services.roadside.stores.models import Route, RecommendedStop, RouteCreate, ...
    from services.roadside.stores.errors import ConstraintViolation, StoreFault, InvalidGeometry
"""
