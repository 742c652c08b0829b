"""
Core transcription components.

- errors: exception taxonomy shared by the store, provider and API
- provider: speech-to-text provider clients
- gateway: upload-transcribe-persist pipeline and history operations
"""

from transcribe_server.core.errors import (
    InputError,
    ProviderError,
    StoreError,
    TranscribeServerError,
)

__all__ = [
    "TranscribeServerError",
    "InputError",
    "ProviderError",
    "StoreError",
]
