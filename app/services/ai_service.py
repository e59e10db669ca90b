"""
AI Service: prompt construction and single-shot calls to Anthropic Claude.
"""
import time

import anthropic

from app.core.config import settings
from app.core.exceptions import UpstreamFailure
from app.core.logging_config import get_logger

logger = get_logger(__name__)

CHAT_SYSTEM_PROMPT = "Answer only using the provided document."
SUMMARY_SYSTEM_PROMPT = "Return only bullet points. No intro."
QUIZ_SYSTEM_PROMPT = "Return ONLY valid JSON. No comments."


def truncate_text(text: str | None, limit: int) -> str:
    """Leading ``limit`` characters of the document text."""
    return (text or "")[:max(limit, 0)]


def get_anthropic_client(timeout: float | None = None) -> anthropic.AsyncAnthropic:
    """Configured Anthropic client. Retries are disabled."""
    if not settings.anthropic_api_key:
        logger.error("Anthropic API key not configured")
        raise UpstreamFailure("AI service is not configured")
    kwargs = {"api_key": settings.anthropic_api_key, "max_retries": 0}
    if timeout is not None:
        kwargs["timeout"] = timeout
    return anthropic.AsyncAnthropic(**kwargs)


async def generate_content(
    prompt: str,
    system_prompt: str,
    max_tokens: int = 1024,
    temperature: float | None = None,
    timeout: float | None = None,
) -> str:
    """
    Send one user prompt to Claude and return the text of the reply.

    Args:
        prompt: The user prompt
        system_prompt: The system instruction
        max_tokens: Maximum tokens in response
        temperature: Sampling temperature; provider default when None
        timeout: Wall-clock bound in seconds for this call only

    Returns:
        Generated text content (may be empty)

    Raises:
        UpstreamFailure: on transport or API errors
    """
    start_time = time.time()
    logger.info(f"Starting AI content generation | model={settings.claude_model} | max_tokens={max_tokens}")
    logger.debug(f"Prompt length: {len(prompt)} chars")

    client = get_anthropic_client(timeout=timeout)
    request = {
        "model": settings.claude_model,
        "max_tokens": max_tokens,
        "system": system_prompt,
        "messages": [{"role": "user", "content": prompt}],
    }
    if temperature is not None:
        request["temperature"] = temperature

    try:
        message = await client.messages.create(**request)
    except anthropic.APIError as e:
        duration_ms = (time.time() - start_time) * 1000
        logger.error(f"AI generation failed | duration={duration_ms:.2f}ms | error={str(e)}")
        raise UpstreamFailure() from e

    duration_ms = (time.time() - start_time) * 1000
    content = "".join(
        block.text for block in message.content if getattr(block, "type", None) == "text"
    )
    logger.info(
        f"AI generation completed | duration={duration_ms:.2f}ms | "
        f"input_tokens={message.usage.input_tokens} | output_tokens={message.usage.output_tokens}"
    )
    return content


async def answer_question(document_text: str, question: str) -> str:
    """Answer a question strictly from the (already truncated) document text."""
    prompt = f"""You are a study assistant. ONLY answer using this document content:

{document_text}

Question: {question}"""

    return await generate_content(prompt, CHAT_SYSTEM_PROMPT, max_tokens=1024)


async def summarize_document(document_text: str) -> str:
    prompt = f"""Summarize the following document into 6-10 concise bullet points.
Do NOT exceed 120 words.

Document:
{document_text}"""

    return await generate_content(
        prompt,
        SUMMARY_SYSTEM_PROMPT,
        max_tokens=512,
        timeout=settings.summary_timeout_seconds,
    )


async def generate_quiz(document_text: str) -> str:
    """
    Ask for a 5-question quiz (2 true/false, 3 multiple choice).

    Returns:
        The model's raw text, expected to be a JSON array of questions
    """
    prompt = f"""Generate a quiz of 5 mixed questions (some True/False and some Multiple-Choice)
based ONLY on the document below.

STRICTLY return a valid JSON array ONLY:

[
  {{
    "type": "mcq" | "true_false",
    "question": "string",
    "options": ["A", "B", "C", "D"] OR ["True", "False"],
    "correctAnswer": 0,
    "explanation": "string"
  }}
]

Rules:
- 2 questions must be true/false.
- 3 questions must be MCQ.
- For MCQ, include 4 options. For True/False, use only ["True", "False"].
- correctAnswer MUST be the zero-based index of the correct option (0 or 1 for True/False).
- MUST include "explanation" for every answer.
- NO text outside the JSON.

Document:
{document_text}"""

    return await generate_content(prompt, QUIZ_SYSTEM_PROMPT, max_tokens=2000, temperature=0.4)
