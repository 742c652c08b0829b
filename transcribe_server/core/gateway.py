"""
Transcription gateway.

Relays uploaded audio to the speech provider and persists the result.
Each call is an independent request/response cycle; the only shared
state is the store handle and the provider client it was built with.
"""

import logging
from datetime import datetime, timezone
from pathlib import PurePath
from typing import List, Optional

from transcribe_server.core.errors import InputError, StoreError
from transcribe_server.core.provider import SpeechProvider
from transcribe_server.database.store import TranscriptRecord, TranscriptStore

logger = logging.getLogger(__name__)

RECORDING_EXTENSION = ".webm"


def recording_filename(now: Optional[datetime] = None) -> str:
    """Display name for audio that arrived without one."""
    moment = now or datetime.now(timezone.utc)
    return f"recording-{moment.strftime('%Y%m%dT%H%M%SZ')}{RECORDING_EXTENSION}"


def display_filename(filename: Optional[str]) -> str:
    # Browsers may send a client-side path; keep only the last component
    if filename:
        name = PurePath(filename.replace("\\", "/")).name.strip()
        if name:
            return name
    return recording_filename()


class TranscriptionGateway:
    """Submit, ListHistory and DeleteHistory over one store and one provider."""

    def __init__(self, store: TranscriptStore, provider: SpeechProvider):
        self._store = store
        self._provider = provider

    @property
    def store(self) -> TranscriptStore:
        return self._store

    async def submit(self, audio: bytes, filename: Optional[str]) -> TranscriptRecord:
        """
        Transcribe ``audio`` and store the transcript.

        Raises:
            InputError: audio is empty
            ProviderError: the provider failed; nothing is stored
            StoreError: the transcript was produced but could not be saved
        """
        if not audio:
            raise InputError("Uploaded audio is empty")

        name = display_filename(filename)
        text = await self._provider.transcribe(audio)
        logger.info(f"Transcribed {name} ({len(audio)} bytes -> {len(text)} chars)")

        try:
            record = self._store.insert(name, text)
        except StoreError:
            logger.error(
                f"Transcript for {name} ({len(text)} chars) could not be saved",
                exc_info=True,
            )
            raise

        return record

    def list_history(self) -> List[TranscriptRecord]:
        return self._store.list_all()

    def delete_history(self, record_id: str) -> bool:
        """Delete one record; an unknown id is a successful no-op."""
        deleted = self._store.delete(record_id)
        if deleted:
            logger.info(f"Deleted transcript {record_id}")
        else:
            logger.debug(f"No transcript with id {record_id}; nothing deleted")
        return deleted
