"""
LLM Helpers Module

Narrow transport to the external recommendation generator. Everything that
talks to the model goes through ``call_llm``; the pipeline only sees the
``RecommendationGenerator`` protocol so tests can swap in a fake.

Example Usage:
    from src.utils.llm_helpers import ClaudeAgentGenerator

    generator = ClaudeAgentGenerator(model="claude-sonnet-4-5")
    text = await generator.generate(prompt, system_prompt=system_prompt)

Note:
    No retries happen here. A failed call raises, and the caller decides
    whether to try again.
"""

from typing import Optional, Protocol

import structlog

logger = structlog.get_logger(__name__)


class RecommendationGenerator(Protocol):
    """Anything that turns a prompt into raw response text."""

    async def generate(self, prompt: str, *, system_prompt: str) -> str: ...


async def call_llm(
    prompt: str,
    system_prompt: str,
    model: Optional[str] = None,
    correlation_id: Optional[str] = None,
) -> str:
    """
    Send one prompt to the LLM and collect the text of its reply.

    Args:
        prompt: The formatted prompt to send to the LLM
        system_prompt: System prompt framing the task
        model: Model name (SDK default if None)
        correlation_id: Optional correlation ID for logging

    Returns:
        LLM response text (may be empty; callers validate the content)

    Raises:
        Exception: Any transport, timeout or quota failure, unchanged
    """
    from claude_agent_sdk import ClaudeAgentOptions, ClaudeSDKClient

    log = logger.bind(correlation_id=correlation_id) if correlation_id else logger
    log.debug("LLM call initiated", prompt_length=len(prompt), model=model)

    try:
        # Pure text generation: single turn, no tools, no project settings
        options = ClaudeAgentOptions(
            max_turns=1,
            allowed_tools=[],
            system_prompt=system_prompt,
            setting_sources=None,
            model=model,
        )

        response_text = ""

        async with ClaudeSDKClient(options=options) as client:
            await client.query(prompt)

            async for message in client.receive_response():
                if hasattr(message, "content") and message.content:
                    for block in message.content:
                        if hasattr(block, "text"):
                            response_text += block.text

        log.debug("LLM call succeeded", response_length=len(response_text))
        return response_text.strip()

    except Exception as e:
        log.error("LLM call failed", error=str(e), prompt_length=len(prompt))
        raise


class ClaudeAgentGenerator:
    """Recommendation generator backed by the Claude Agent SDK."""

    def __init__(self, model: Optional[str] = None, correlation_id: Optional[str] = None):
        self.model = model
        self.correlation_id = correlation_id

    async def generate(self, prompt: str, *, system_prompt: str) -> str:
        return await call_llm(
            prompt,
            system_prompt=system_prompt,
            model=self.model,
            correlation_id=self.correlation_id,
        )
