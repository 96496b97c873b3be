import asyncio
import base64
import json
import logging
import re
from typing import Dict, List

import httpx

from app.settings import settings
from infra.llm.prompts import JOB_EXTRACTION_PROMPT, render_resume_prompt
from infra.pdf.parser import document_text

logger = logging.getLogger(__name__)

GEMINI_URL = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"
OPENAI_URL = "https://api.openai.com/v1/chat/completions"
OPENROUTER_URL = "https://openrouter.ai/api/v1/chat/completions"

_FENCE = re.compile(r"```(?:json)?", re.I)


class ProviderNotConfigured(RuntimeError):
    pass


class QuotaExceeded(RuntimeError):
    pass


async def _post_with_retries(
    url: str,
    headers: Dict[str, str],
    payload: Dict,
    *,
    timeout: int | None = None,
    max_attempts: int | None = None,
) -> Dict:
    timeout = timeout or settings.LLM_TIMEOUT_SECONDS
    max_attempts = max_attempts or settings.LLM_MAX_ATTEMPTS
    backoff = 1.0
    for attempt in range(1, max_attempts + 1):
        try:
            async with httpx.AsyncClient(timeout=timeout) as client:
                response = await client.post(url, headers=headers, json=payload)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            # 429 burns quota on every retry
            if status == 429:
                raise QuotaExceeded(f"provider quota exceeded ({url})") from exc
            retriable = status >= 500 or status == 408
            if not retriable or attempt == max_attempts:
                raise
        except httpx.RequestError:
            if attempt == max_attempts:
                raise
        logger.warning("provider call failed (attempt %d/%d), retrying", attempt, max_attempts)
        await asyncio.sleep(backoff)
        backoff *= 2
    raise RuntimeError("Unexpected retry exhaustion")


async def _gemini_generate(prompt: str, content_type: str, data: bytes) -> str:
    url = GEMINI_URL.format(model=settings.GEMINI_MODEL)
    headers = {"x-goog-api-key": settings.GEMINI_API_KEY}
    payload = {
        "contents": [{
            "role": "user",
            "parts": [
                {"text": prompt},
                {"inline_data": {"mime_type": content_type or "application/pdf",
                                 "data": base64.b64encode(data).decode("ascii")}},
            ],
        }],
        "generationConfig": {"responseMimeType": "application/json", "temperature": 0.2},
    }
    body = await _post_with_retries(url, headers, payload)
    return body["candidates"][0]["content"]["parts"][0]["text"]


async def _chat(url: str, headers: Dict[str, str], model: str, messages: List[Dict]) -> str:
    payload = {
        "model": model,
        "messages": messages,
        "temperature": 0.2,
        "response_format": {"type": "json_object"},
    }
    data = await _post_with_retries(url, headers, payload)
    return data["choices"][0]["message"]["content"]


async def _choose_and_call(prompt: str, content_type: str, data: bytes) -> str:
    if settings.GEMINI_API_KEY:
        return await _gemini_generate(prompt, content_type, data)

    if settings.OPENAI_API_KEY or settings.OPENROUTER_API_KEY:
        text = await asyncio.to_thread(document_text, content_type, data)
        messages = [
            {"role": "system", "content": "You are a strict evaluator returning only valid JSON."},
            {"role": "user", "content": f"{prompt}\n\nDocument:\n{text[:12000]}"},
        ]
        if settings.OPENAI_API_KEY:
            headers = {"Authorization": f"Bearer {settings.OPENAI_API_KEY}"}
            return await _chat(OPENAI_URL, headers, settings.OPENAI_MODEL, messages)
        headers = {
            "Authorization": f"Bearer {settings.OPENROUTER_API_KEY}",
            "HTTP-Referer": "http://localhost",
            "X-Title": settings.APP_NAME,
        }
        return await _chat(OPENROUTER_URL, headers, settings.OPENROUTER_MODEL, messages)

    raise ProviderNotConfigured("No LLM provider configured")


def parse_json_response(raw_text: str) -> Dict:
    cleaned = _FENCE.sub("", raw_text or "").strip()
    try:
        parsed = json.loads(cleaned)
    except json.JSONDecodeError as exc:
        raise ValueError("LLM response was not valid JSON") from exc
    if not isinstance(parsed, dict):
        raise ValueError("LLM response was not a JSON object")
    return parsed


async def extract_job_details_llm(document) -> Dict:
    logger.info("Extracting job details from %s", document.name)
    raw = await _choose_and_call(JOB_EXTRACTION_PROMPT, document.content_type, document.data)
    return parse_json_response(raw)


async def analyze_resume_llm(document, job_context) -> Dict:
    prompt = render_resume_prompt(
        job_context.title,
        job_context.skills,
        job_context.description,
        settings.JD_DESCRIPTION_PROMPT_CHARS,
    )
    logger.info("Sending %s for resume analysis", document.name)
    raw = await _choose_and_call(prompt, document.content_type, document.data)
    logger.debug("Raw analysis response for %s: %s...", document.name, raw[:100])
    return parse_json_response(raw)
