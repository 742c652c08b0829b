"""
REST API for transcribe-server.

Provides a single FastAPI application serving:
- Liveness endpoints (/, /health)
- Audio upload and transcription (/upload)
- Transcript history (/history)
"""
