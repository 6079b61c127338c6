import os
import json
from typing import Any, Optional

import httpx
import openai
from openai import OpenAI

from app.services.errors import PermanentGenerationError, TransientGenerationError
from app.services.generation import GeneratedArticle, SourceItem, TargetNeighborhood

MODEL = os.getenv("OPENAI_MODEL", "gpt-4o-mini")

DEFAULT_CONFIDENCE = 0.75

CATEGORY_HINTS = {
    "transport": "Focus on what changes for commuters: lines, stops, dates and times, alternatives.",
    "weather": "Focus on practical impact for residents today and tomorrow.",
    "emergency": "Lead with the warning. State what residents should do now.",
    "events": "Give date, time, place and who the event is for.",
    "business": "Name the business, the street and what is new.",
    "community": "Highlight neighbors, associations and how to get involved.",
    "local_government": "Explain the decision and how it affects the neighborhood.",
    "culture": "Name the venue, the programme and dates.",
}


def build_instructions(category: str, neighborhood_name: str) -> str:
    base = f"""
You are an editor of a hyperlocal news bulletin for the neighborhood {neighborhood_name} in Prague.
Write in Czech. Be specific and useful for local residents. No fluff, no invented facts.
Mention Praha and the neighborhood name. Length: 3-8 sentences, 100-1000 characters.
Title: 10-80 characters.
""".strip()

    hint = CATEGORY_HINTS.get(category, "Keep it clear and direct.")

    output = """
Return ONLY a JSON object with keys:
"title" (string), "body" (string), "summary" (one sentence), "confidence" (0.0-1.0, how publishable the article is).
""".strip()

    return "\n\n".join([base, f"Category: {category}\n{hint}", output]).strip()


def _raw_item_block(raw_item: SourceItem) -> str:
    return f"""
SOURCE: {raw_item.source}
URL: {raw_item.url or "(none)"}

TITLE:
{raw_item.title}

TEXT:
{raw_item.body or "(no text)"}
""".strip()


def parse_article(text: str) -> GeneratedArticle:
    """Parse the model answer; malformed answers are worth another attempt."""
    text = (text or "").strip()
    # tolerate ```json fences
    if text.startswith("```"):
        text = text.strip("`")
        if text.lower().startswith("json"):
            text = text[4:]
    try:
        data: dict[str, Any] = json.loads(text)
    except json.JSONDecodeError as e:
        raise TransientGenerationError(f"Unparsable generator answer: {e}") from e

    if not isinstance(data, dict):
        raise TransientGenerationError("Generator answer is not a JSON object")

    title = str(data.get("title") or "").strip()
    body = str(data.get("body") or "").strip()
    if not title or not body:
        raise TransientGenerationError("Generator answer is missing title or body")

    try:
        confidence = float(data.get("confidence", DEFAULT_CONFIDENCE))
    except (TypeError, ValueError):
        confidence = DEFAULT_CONFIDENCE
    confidence = min(max(confidence, 0.0), 1.0)

    summary = str(data.get("summary") or "").strip() or None
    return GeneratedArticle(title=title, body=body, summary=summary, confidence=confidence)


class OpenAIArticleGenerator:
    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        timeout: float = 30.0,
        client: Optional[OpenAI] = None,
    ):
        self.model = model or MODEL
        # retries are handled by GenerationService, not by the SDK
        self.client = client or OpenAI(
            api_key=api_key or os.getenv("OPENAI_API_KEY"),
            timeout=httpx.Timeout(timeout, connect=5.0),
            max_retries=0,
        )

    def generate(self, raw_item: SourceItem, neighborhood: Optional[TargetNeighborhood], category: str) -> GeneratedArticle:
        neighborhood_name = neighborhood.name if neighborhood else "Praha"

        try:
            resp = self.client.responses.create(
                model=self.model,
                instructions=build_instructions(category, neighborhood_name),
                input=_raw_item_block(raw_item),
            )
        except (openai.APITimeoutError, openai.APIConnectionError, openai.RateLimitError) as e:
            raise TransientGenerationError(str(e)) from e
        except openai.APIStatusError as e:
            if e.status_code == 503:
                raise PermanentGenerationError(f"Generator unavailable: {e}") from e
            if e.status_code >= 500:
                raise TransientGenerationError(str(e)) from e
            # auth, permission, bad request: retrying will not change the answer
            raise PermanentGenerationError(str(e)) from e
        except openai.APIError as e:
            # malformed responses and anything else the SDK raises
            raise TransientGenerationError(str(e)) from e

        article = parse_article(resp.output_text)
        article.metadata = {"source": "openai", "model": self.model}
        return article
