"""
Roadside -- travel routes, recommended stops and nearby-route search.

Entrypoint: uvicorn services.roadside.main:app
"""
