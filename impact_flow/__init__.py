"""
impact-flow Application Package

Directory Structure:
├── domain/            # Entities, errors and domain events
├── storage/           # Repository interfaces and backends
│   ├── memory.py      # In-memory repositories
│   ├── sqlite/        # Embedded SQLite with debounced snapshots
│   ├── remote.py      # httpx client for the companion service
│   ├── snapshots/     # Filesystem / S3 stores for the SQLite image
│   └── factory.py     # Backend selection and lifecycle
├── application/       # Delegation service, demo data, event handlers
├── db/                # SQLAlchemy schema and row repositories
├── routers/           # FastAPI route handlers of the companion service
├── schemas/           # Pydantic models for API requests/responses
└── config.py          # Application configuration

Record Types Clarification:
1. **Domain entities** (impact_flow.domain.entities): Pydantic models, camelCase on the wire
2. **Table models** (impact_flow.db.models): SQLAlchemy rows shared by the embedded
   backend and the companion service
3. **API Schemas** (impact_flow.schemas.api_schemas): request/response envelopes
"""
