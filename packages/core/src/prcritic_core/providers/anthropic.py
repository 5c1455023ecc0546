from __future__ import annotations

from prcritic_core.providers.base import BaseReviewer


class AnthropicReviewer(BaseReviewer):
    MODEL = "claude-sonnet-4-20250514"
    TEMPERATURE = 0.3

    def __init__(self, api_key: str, model: str | None = None, guidelines: str = ""):
        super().__init__(model=model, guidelines=guidelines)
        try:
            from anthropic import AsyncAnthropic
        except ImportError:
            raise ImportError(
                "The 'anthropic' package is required for this provider. "
                "Install it with: pip install 'prcritic[anthropic]'"
            )
        self.client = AsyncAnthropic(api_key=api_key)

    async def _call_api(self, system_prompt: str, user_prompt: str) -> str:
        # anthropic is optional; __init__ already proved it is importable.
        from anthropic.types import TextBlock

        response = await self.client.messages.create(
            model=self.model,
            system=system_prompt,
            messages=[{"role": "user", "content": user_prompt}],
            temperature=self.TEMPERATURE,
            max_tokens=self.MAX_TOKENS,
        )
        text_blocks = [block.text for block in response.content if isinstance(block, TextBlock)]
        return "".join(text_blocks).strip()
