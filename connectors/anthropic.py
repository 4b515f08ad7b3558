"""
Anthropic Messages API connector used to narrate a correlation result.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import logging
from typing import AsyncIterator, Optional

import anthropic

from datasources.exceptions import (
    AnalyzerNotConfigured,
    DataSourceUnavailable,
    InvalidQuery,
    QueryTimeout,
)

log = logging.getLogger(__name__)

SYSTEM_PROMPT = """You are an expert Site Reliability Engineer (SRE) analyzing observability data.

Your role:
- Analyze logs, metrics, and traces to identify issues
- Provide clear, actionable insights
- Prioritize by severity and impact
- Suggest root causes and remediation steps
- Use concise, technical language appropriate for SREs

When analyzing data:
1. Start with a brief summary of what you see
2. Highlight anomalies or errors
3. Identify patterns or correlations
4. Suggest next steps or investigation paths

Format your response with clear sections using markdown."""


class AnthropicAnalyzer:
    def __init__(
        self,
        api_key: str,
        model: str,
        max_tokens: int = 4096,
        timeout: int = 120,
        client: Optional[anthropic.AsyncAnthropic] = None,
    ):
        self.api_key = api_key
        self.model = model
        self.max_tokens = max_tokens
        self.timeout = timeout
        self._client = client

    def _get_client(self) -> anthropic.AsyncAnthropic:
        if self._client is None:
            self._client = anthropic.AsyncAnthropic(api_key=self.api_key, timeout=self.timeout)
        return self._client

    async def analyze(self, prompt: str) -> AsyncIterator[str]:
        if not self.api_key:
            raise AnalyzerNotConfigured("Anthropic API key is not configured")

        client = self._get_client()
        log.debug("streaming analysis model=%s prompt_chars=%d", self.model, len(prompt))
        try:
            async with client.messages.stream(
                model=self.model,
                max_tokens=self.max_tokens,
                system=SYSTEM_PROMPT,
                messages=[{"role": "user", "content": prompt}],
            ) as stream:
                async for text in stream.text_stream:
                    if text:
                        yield text
        # APITimeoutError subclasses APIConnectionError
        except anthropic.APITimeoutError as e:
            raise QueryTimeout("Anthropic request timed out") from e
        except anthropic.APIConnectionError as e:
            raise DataSourceUnavailable("Cannot reach the Anthropic API") from e
        except anthropic.APIStatusError as e:
            raise InvalidQuery(f"Anthropic request failed [{e.status_code}]: {e.message}") from e
