from __future__ import annotations

from prcritic_core.providers.base import BaseReviewer


class GeminiReviewer(BaseReviewer):
    MODEL = "gemini-2.5-flash"
    TEMPERATURE = 0.0

    def __init__(self, api_key: str, model: str | None = None, guidelines: str = ""):
        super().__init__(model=model, guidelines=guidelines)
        try:
            from google import genai
        except ImportError:
            raise ImportError(
                "The 'google-genai' package is required for this provider. "
                "Install it with: pip install google-genai"
            )
        self.client = genai.Client(api_key=api_key)

    async def _call_api(self, system_prompt: str, user_prompt: str) -> str:
        from google.genai import types

        response = await self.client.aio.models.generate_content(
            model=self.model,
            contents=user_prompt,
            config=types.GenerateContentConfig(
                system_instruction=system_prompt,
                response_mime_type="application/json",
                temperature=self.TEMPERATURE,
                max_output_tokens=self.MAX_TOKENS,
            ),
        )
        return response.text or ""
