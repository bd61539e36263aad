from chapterclips import prompts
from chapterclips.models import Chapter
from chapterclips.parsing import END_TIME_PATTERN, START_TIME_PATTERN

FRAGMENT = "00:04.000 --> 00:09.500\nToday we talk about\nsourdough starters.\n"


def test_build_prompt_embeds_fragment_verbatim():
    prompt = prompts.build_prompt(Chapter(start_ms=0, end_ms=60_000, transcript_fragment=FRAGMENT))

    assert f"Transcript:\n{FRAGMENT}\nEnd transcript." in prompt
    assert "between 45 seconds and 59 seconds" in prompt
    assert "at least 45" in prompt
    assert "mid sentence" in prompt
    assert "Clip Start time:" in prompt
    assert "Clip End time:" in prompt


def test_build_prompt_is_deterministic_apart_from_fragment():
    first = prompts.build_prompt(Chapter(start_ms=0, end_ms=1, transcript_fragment="A\n"))
    second = prompts.build_prompt(Chapter(start_ms=5, end_ms=9, transcript_fragment="A\n"))
    other = prompts.build_prompt(Chapter(start_ms=0, end_ms=1, transcript_fragment="B\n"))

    assert first == second
    assert first.replace("A\n", "B\n") == other


def test_template_output_shape_does_not_match_extractor():
    prompt = prompts.build_prompt(Chapter(start_ms=0, end_ms=1, transcript_fragment=""))

    assert START_TIME_PATTERN.search(prompt) is None
    assert END_TIME_PATTERN.search(prompt) is None


def test_add_prompts_to_chapters_keeps_order_and_originals():
    chapters = [
        Chapter(start_ms=0, end_ms=1, transcript_fragment="one\n"),
        Chapter(start_ms=1, end_ms=2, transcript_fragment="two\n"),
    ]

    result = prompts.add_prompts_to_chapters(chapters)

    assert ["one\n" in c.prompt for c in result] == [True, False]
    assert "two\n" in result[1].prompt
    assert all(c.prompt is None for c in chapters)


class _Encoding:
    def encode(self, text):
        return text.split()


def test_count_prompt_tokens_falls_back_for_unknown_models(monkeypatch):
    requested = {}

    def unknown_model(name):
        requested["model"] = name
        raise KeyError(name)

    def get_encoding(name):
        requested["encoding"] = name
        return _Encoding()

    monkeypatch.setattr(prompts.tiktoken, "encoding_for_model", unknown_model)
    monkeypatch.setattr(prompts.tiktoken, "get_encoding", get_encoding)

    assert prompts.count_prompt_tokens("four words right here", "my-local-model") == 4
    assert requested == {"model": "my-local-model", "encoding": "cl100k_base"}
