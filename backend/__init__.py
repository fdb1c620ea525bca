# backend -- FastAPI server for CNPJ lookups
#
# Modules:
#   app        -- FastAPI application with lifespan management
#   schemas    -- Pydantic request/response schemas
#   routes/    -- API endpoints (lookup)
