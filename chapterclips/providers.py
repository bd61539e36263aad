import os

from chapterclips.errors import CompletionUnavailable


async def complete_openai(prompt: str, model: str) -> str:
    try:
        from openai import AsyncOpenAI
    except ImportError as exc:
        raise CompletionUnavailable(
            "OpenAI provider unavailable. Install dependency: pip install openai"
        ) from exc

    try:
        client = AsyncOpenAI()
        response = await client.chat.completions.create(
            model=model,
            messages=[{"role": "user", "content": prompt}],
        )
        content = response.choices[0].message.content
    except Exception as exc:
        raise CompletionUnavailable(f"OpenAI request failed: {exc}") from exc

    if not content:
        raise CompletionUnavailable("OpenAI returned an empty response.")
    return content.strip()


async def complete_gemini(prompt: str, model: str) -> str:
    try:
        from google import genai
    except ImportError as exc:
        raise CompletionUnavailable(
            "Gemini provider unavailable. Install dependency: pip install google-genai"
        ) from exc

    api_key = os.environ.get("GEMINI_API_KEY")
    if not api_key:
        raise CompletionUnavailable("Gemini provider requires GEMINI_API_KEY to be set.")

    try:
        client = genai.Client(api_key=api_key)
        response = await client.aio.models.generate_content(model=model, contents=prompt)
        content = response.text
    except Exception as exc:
        raise CompletionUnavailable(f"Gemini request failed: {exc}") from exc

    if not content:
        raise CompletionUnavailable("Gemini returned an empty response.")
    return content.strip()


async def complete_ollama(prompt: str, model: str) -> str:
    try:
        import ollama
    except ImportError as exc:
        raise CompletionUnavailable(
            "Ollama provider unavailable. Install dependency: pip install ollama"
        ) from exc

    try:
        response = await ollama.AsyncClient().chat(
            model=model,
            messages=[{"role": "user", "content": prompt}],
        )
        content = response["message"]["content"]
    except Exception as exc:
        raise CompletionUnavailable(f"Ollama request failed: {exc}") from exc

    if not content:
        raise CompletionUnavailable("Ollama returned an empty response.")
    return content.strip()


async def complete(provider: str, prompt: str, model: str) -> str:
    """Send one prompt to the configured provider and return its text.

    Retrying is left to the caller.
    """
    provider_handlers = {
        "openai": complete_openai,
        "gemini": complete_gemini,
        "ollama": complete_ollama,
    }
    handler = provider_handlers.get(provider)
    if handler is None:
        valid_providers = ", ".join(provider_handlers.keys())
        raise CompletionUnavailable(
            f"Unknown provider '{provider}'. Expected one of: {valid_providers}"
        )
    return await handler(prompt, model)
