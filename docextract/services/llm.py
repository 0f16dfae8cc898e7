"""
llm.py

OpenAI gateway. All chat-completion calls for extraction live here.

This file:
- Sends one prompt and returns the reply text
- Forces JSON mode and a low temperature
- Turns every client failure into LLMCommunicationError

This file does NOT parse or validate the reply.
"""

import logging

from openai import OpenAI, OpenAIError

from docextract.config import LLMConfig
from docextract.exceptions import LLMCommunicationError, LLMEmptyResponse
from docextract.services.prompt_builder import SYSTEM_PROMPT

logger = logging.getLogger(__name__)


class LLMClient:
    """
    Thin wrapper around the OpenAI chat completions API.

    The client has a fixed timeout and no automatic retries, so a
    hanging call ends as LLMCommunicationError.
    """

    def __init__(self, config: LLMConfig, client: OpenAI = None):
        """
        Parameters:
        - config: model name, temperature, timeout and API key
        - client: ready-made OpenAI client (tests pass a fake here)
        """

        self.config = config
        self.client = client or OpenAI(
            api_key=config.api_key,
            timeout=config.timeout_seconds,
            max_retries=0,
        )

    def complete(self, prompt: str) -> str:
        """
        Send the prompt and return the raw reply text.

        Raises:
        - LLMEmptyResponse if the model returns no text
        - LLMCommunicationError on any API or network failure
        """

        logger.info("Sending prompt to %s (%d chars)", self.config.model, len(prompt))

        try:
            response = self.client.chat.completions.create(
                model=self.config.model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
                temperature=self.config.temperature,
                max_tokens=self.config.max_tokens,
                response_format={"type": "json_object"},
            )
            content = response.choices[0].message.content if response.choices else None

        except OpenAIError as error:
            logger.exception("OpenAI API call failed")
            raise LLMCommunicationError(
                "Failed to communicate with the AI service.", original=error
            ) from error

        except Exception as error:
            logger.exception("Unexpected error calling the AI service")
            raise LLMCommunicationError(
                "Failed to communicate with the AI service.", original=error
            ) from error

        if not content or not content.strip():
            logger.error("The response text is empty.")
            raise LLMEmptyResponse()

        logger.info("Received response from the model (%d chars)", len(content))
        logger.debug("Model response: %s", content)
        return content
