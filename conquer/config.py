"""
Single place for default table/server configuration.
Change DEFAULT_PLAYER_COUNT to switch how many seats a new table starts with.
"""
# Seats used when POST /games does not name a player count (2-6).
DEFAULT_PLAYER_COUNT = 6

# Frontend dev servers allowed to call the API.
CORS_ORIGINS = ["http://localhost:5173", "http://localhost:5174", "http://localhost:3000"]

API_HOST = "0.0.0.0"
API_PORT = 8000
