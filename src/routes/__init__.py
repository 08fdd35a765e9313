"""
API Routes Package
==================
One router per handler; api.py mounts them on the FastAPI app.

Modules:
  helpers  - DB utilities, type coercion, CORS-aware responses
  insights - /generate-insight endpoint
  workouts - /parse-workout endpoint
  sync     - /sync-data endpoint
"""
