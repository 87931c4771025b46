import json
import logging
import re
from typing import Any, Dict, Optional

import requests

from exceptions import UpstreamError
from models.config import EnhancementConfig

logger = logging.getLogger("EnhancementClient")

ENHANCE_DESCRIPTION_PROMPT = """
Enhance the following description to be more engaging, specific, and SEO-friendly for use in meta tags, Open Graph tags, Twitter Cards, and structured data.

IMPORTANT: Output only the enhanced description text. No explanations, formatting, quotes, or additional text.

Description to enhance: {description}
"""

GENERATE_EXTRA_FIELDS_PROMPT = """
Generate extra fields for a website based on the provided information. Create site slang, relevant keywords, and an image subtitle for social media.

Site URL: {site_url}
Site Title: {title}
Site Description: {description}

IMPORTANT: Output only valid JSON in the exact format below. No explanations, markdown formatting, code blocks, or additional text.

{{
    "siteSlang": "string",
    "keywords": "string",
    "imageSubtitle": "string"
}}
"""

EXTRA_FIELD_KEYS = ("siteSlang", "keywords", "imageSubtitle")
CODE_FENCE_REGEX = re.compile(r'^```(?:json)?\s*|\s*```$')


class EnhancementClient:
    """Blocking client for the generateContent text-generation endpoint"""

    def __init__(self, config: Optional[EnhancementConfig] = None):
        self.config = config or EnhancementConfig()

    @property
    def configured(self) -> bool:
        return bool(self.config.api_key)

    def _endpoint(self) -> str:
        return f"{self.config.base_url.rstrip('/')}/models/{self.config.model}:generateContent"

    def call_model(self, prompt: str) -> str:
        """Send one prompt and return the concatenated text of the first candidate.

        Raises:
            UpstreamError: On missing credentials, network failure, non-200 status,
                or a response without text
        """
        if not self.configured:
            raise UpstreamError("Text enhancement service is not configured")

        payload = {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": {
                "thinkingConfig": {"thinkingBudget": self.config.thinking_budget},
            },
        }
        try:
            response = requests.post(
                self._endpoint(),
                headers={"x-goog-api-key": self.config.api_key, "Content-Type": "application/json"},
                json=payload,
                timeout=self.config.timeout_seconds,
            )
        except requests.exceptions.RequestException as e:
            logger.error(f"Enhancement request failed: {e}")
            raise UpstreamError("Text enhancement service unreachable") from e

        if response.status_code != 200:
            logger.error(f"Enhancement request returned {response.status_code}: {response.text[:500]}")
            raise UpstreamError("Text enhancement service returned an error", status_code=response.status_code)

        try:
            data = response.json()
            parts = data["candidates"][0]["content"]["parts"]
            text = "".join(part.get("text", "") for part in parts).strip()
        except (ValueError, KeyError, IndexError, TypeError) as e:
            logger.error(f"Unexpected enhancement response shape: {e}")
            raise UpstreamError("Text enhancement service returned an unexpected response") from e

        if not text:
            raise UpstreamError("Text enhancement service returned no text")
        return text

    def enhance(self, text: str) -> str:
        logger.info(f"Enhancing description ({len(text)} chars) with {self.config.model}")
        return self.call_model(ENHANCE_DESCRIPTION_PROMPT.format(description=text))

    def generate_extra_fields(self, site_url: str, title: str, description: str) -> Dict[str, Any]:
        """Suggest siteSlang, keywords and imageSubtitle for the site.

        Raises:
            UpstreamError: If the call fails or the model output is not the expected JSON object
        """
        raw = self.call_model(
            GENERATE_EXTRA_FIELDS_PROMPT.format(site_url=site_url, title=title, description=description)
        )
        cleaned = CODE_FENCE_REGEX.sub("", raw.strip())
        try:
            fields = json.loads(cleaned)
        except json.JSONDecodeError as e:
            logger.error(f"Extra fields response was not JSON: {raw[:200]}")
            raise UpstreamError("Text enhancement service returned invalid JSON") from e

        if not isinstance(fields, dict):
            raise UpstreamError("Text enhancement service returned invalid JSON")
        return {key: str(fields.get(key, "")) for key in EXTRA_FIELD_KEYS}
