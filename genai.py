"""Listing description suggestions from the Gemini API."""
import logging
import os

import requests

logger = logging.getLogger(__name__)

GEMINI_API_KEY = os.getenv("GEMINI_API_KEY")
GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")
GEMINI_URL = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"
TIMEOUT_SECONDS = 10

FALLBACK_DESCRIPTION = "We couldn't generate a description at this time. Please write one manually."

PROMPT = (
    'Create a short, appealing, and friendly description for a food donation listing. '
    'The title of the item is "{title}". The description should be under 200 characters. '
    "Mention it's a great opportunity for a delicious meal and highlight the spirit of "
    "community sharing. Do not use hashtags or emojis."
)


def generate_food_description(title: str, api_key: str = None) -> str:
    """Never raises: any failure gives FALLBACK_DESCRIPTION."""
    api_key = api_key or GEMINI_API_KEY
    if not api_key:
        logger.warning("GEMINI_API_KEY not set, using fallback description")
        return FALLBACK_DESCRIPTION
    try:
        resp = requests.post(
            GEMINI_URL.format(model=GEMINI_MODEL),
            params={"key": api_key},
            json={
                "contents": [{"parts": [{"text": PROMPT.format(title=title)}]}],
                "generationConfig": {"thinkingConfig": {"thinkingBudget": 0}},
            },
            timeout=TIMEOUT_SECONDS,
        )
        resp.raise_for_status()
        text = resp.json()["candidates"][0]["content"]["parts"][0]["text"].strip()
        if not text:
            raise ValueError("empty response")
        return text
    except (requests.RequestException, KeyError, IndexError, TypeError, ValueError) as e:
        logger.warning("Error generating food description: %s", e)
        return FALLBACK_DESCRIPTION
