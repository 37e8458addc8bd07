"""
MicroVolunteer - volunteer task and participation lifecycle service

Architecture:
┌─────────────────────────────────────────────────────────┐
│  HTTP: FastAPI routes, bearer token → Principal          │
└─────────────────────────────────────────────────────────┘
                        │ calls
                        ▼
┌─────────────────────────────────────────────────────────┐
│  Services                                                │
│  - TaskLifecycleManager: create/edit, status machine     │
│  - ParticipationCoordinator: join/leave, history         │
│  - CapacityGate: free-place rule                         │
└─────────────────────────────────────────────────────────┘
                        │ uses
                        ▼
┌─────────────────────────────────────────────────────────┐
│  ITaskRepository: in-memory (per-task asyncio.Lock) or   │
│  SQL (row lock + transaction)                            │
└─────────────────────────────────────────────────────────┘
"""

__version__ = "0.1.0"
