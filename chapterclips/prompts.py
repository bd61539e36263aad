from dataclasses import replace

import tiktoken

from chapterclips.models import Chapter

FALLBACK_ENCODING = "cl100k_base"

CLIP_PROMPT_TEMPLATE = """I am going to give you a transcript formatted as VTT file, and it will be your job to pull out a clip that is between 45 seconds and 59 seconds. Based on the text content I paste below, please tell me the start time and end time of a clip that will make for an engaging youtube short. This clip must be at least 45 seconds long. This means that, if we were to subtract the start time from the end time, we must get a value of at least 45. Also, please do not give me a clip that starts or ends mid sentence. The clip of text must feel like a complete thought.

Transcript:
{transcript}
End transcript.

Output format:
Clip Start time: MM:SS.mmm
Clip End time: MM:SS.mmm

Output:
"""


def build_prompt(chapter: Chapter) -> str:
    return CLIP_PROMPT_TEMPLATE.format(transcript=chapter.transcript_fragment or "")


def add_prompts_to_chapters(chapters: list[Chapter]) -> list[Chapter]:
    return [replace(chapter, prompt=build_prompt(chapter)) for chapter in chapters]


def count_prompt_tokens(prompt: str, model: str) -> int:
    """Count prompt tokens with the model's tokenizer (cl100k_base when unknown)."""
    try:
        encoding = tiktoken.encoding_for_model(model)
    except KeyError:
        encoding = tiktoken.get_encoding(FALLBACK_ENCODING)
    return len(encoding.encode(prompt))
