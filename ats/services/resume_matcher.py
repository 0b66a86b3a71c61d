"""Score a resume against a job description with an LLM."""
import json
import logging
from typing import Optional

from openai import AsyncOpenAI, OpenAIError
from pydantic import ValidationError

from ats.config import settings
from ats.errors import IntegrationError
from ats.schemas.analysis import ResumeMatch

logger = logging.getLogger(__name__)


PROMPT = """Analyze the following resume against the provided job description.
Return:
- Candidate name and email.
- A score (1-100) indicating how well the resume matches the job description.
- A list of good points (skills/experience that align with the job description).
- A list of bad points (missing or weak areas compared to the job description).

Job Description:
{job_description}

Resume:
{resume}

Output in JSON format:
{{
  "candidate_name": string,
  "email": string,
  "score": number,
  "good_points": string[],
  "bad_points": string[]
}}"""


class ResumeMatcher:
    def __init__(self, client: Optional[AsyncOpenAI] = None):
        self.client = client or AsyncOpenAI(api_key=settings.openai_api_key)
        self.model = settings.resume_match_model
        self.temperature = settings.resume_match_temperature

    async def match(self, resume: str, job_description: str) -> ResumeMatch:
        """Ask the model for a structured match; bad output is an integration error."""
        try:
            completion = await self.client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": PROMPT.format(job_description=job_description, resume=resume)}],
                temperature=self.temperature,
                response_format={"type": "json_object"},
            )
        except OpenAIError as e:
            logger.error("Resume match request failed: %s", e)
            raise IntegrationError("Resume matching service failed") from e

        raw = (completion.choices[0].message.content or "").strip()
        if raw.startswith("```"):
            raw = raw.replace("```json", "").replace("```", "").strip()

        try:
            return ResumeMatch(**json.loads(raw))
        except (json.JSONDecodeError, TypeError, ValidationError) as e:
            logger.warning("Unusable resume match output: %s", e)
            raise IntegrationError("Resume matching returned an invalid result") from e
