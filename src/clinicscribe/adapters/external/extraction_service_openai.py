"""
OpenAI-based structured extraction of appointment data from a transcript.
"""

import json
import logging
import os
import time
from typing import Any, Dict, Optional

import openai
from openai import AsyncOpenAI

from clinicscribe.application.ports.services.extraction_service import ExtractionService
from clinicscribe.core.config import get_settings
from clinicscribe.core.exceptions import ConfigurationError
from clinicscribe.domain.errors import ExtractionError

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """You are a medical transcription assistant. Extract structured data from the appointment transcription.
Return a JSON object with the following structure:
{
  "chief_complaint": "Main reason for visit",
  "symptoms": [
    {
      "name": "symptom name",
      "severity": "mild/moderate/severe",
      "duration": "duration description",
      "notes": "additional notes"
    }
  ],
  "diagnosis": "Final diagnosis or impression",
  "prescription": [
    {
      "medication": "medication name",
      "dosage": "dosage amount",
      "frequency": "how often",
      "duration": "how long",
      "instructions": "special instructions"
    }
  ],
  "lab_tests": [
    {
      "test_name": "name of test",
      "reason": "reason for test"
    }
  ],
  "vital_signs": {
    "blood_pressure": "BP reading",
    "heart_rate": "HR reading",
    "temperature": "temp reading",
    "weight": "weight",
    "height": "height"
  },
  "examination_findings": "Physical examination findings and observations",
  "follow_up_date": "suggested follow-up date in YYYY-MM-DD format or null",
  "follow_up_notes": "follow-up instructions and notes"
}

Extract only the information that is explicitly mentioned. Use null for missing data."""


class OpenAIExtractionService(ExtractionService):
    """Extraction via chat completions in JSON-object mode."""

    def __init__(self, client: Optional[AsyncOpenAI] = None) -> None:
        self._settings = get_settings()
        if client is None:
            api_key = self._settings.openai.api_key or os.getenv("OPENAI_API_KEY", "")
            if not api_key:
                raise ConfigurationError("OPENAI_API_KEY is not set")
            client = AsyncOpenAI(
                api_key=api_key,
                timeout=self._settings.extraction.timeout_seconds,
            )
        self._client = client

    async def extract(self, transcript: str) -> Dict[str, Any]:
        start_time = time.time()
        try:
            resp = await self._client.chat.completions.create(
                model=self._settings.extraction.model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {
                        "role": "user",
                        "content": f"Extract structured appointment data from this transcription:\n\n{transcript}",
                    },
                ],
                response_format={"type": "json_object"},
                temperature=self._settings.extraction.temperature,
            )
        except openai.OpenAIError as e:
            raise ExtractionError(f"Data extraction failed: {e}") from e

        content = (resp.choices[0].message.content or "").strip() if resp.choices else ""
        logger.info(
            f"Extraction completed in {time.time() - start_time:.2f}s "
            f"(model={self._settings.extraction.model}, transcript_chars={len(transcript)})"
        )

        # Malformed model output degrades to an empty record downstream
        try:
            data = json.loads(content or "{}")
        except json.JSONDecodeError:
            logger.warning(f"Extraction returned invalid JSON: {content[:200]!r}")
            data = {}
        return {"data": data}
