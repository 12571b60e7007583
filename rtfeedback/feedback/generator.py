"""
OpenAI chat-completions integration that writes a participant's feedback patterns.

Docs: https://platform.openai.com/docs/api-reference/chat/create
"""
import http.client
import json
import logging
import urllib.error
import urllib.request
from dataclasses import dataclass

from django.conf import settings

from rtfeedback.feedback.profiles import ParticipantProfile
from rtfeedback.feedback.registry import VARIANTS_PER_SCENARIO
from rtfeedback.feedback.registry import scenario_catalog

logger = logging.getLogger(__name__)

OPENAI_CHAT_COMPLETIONS_URL = "https://api.openai.com/v1/chat/completions"

# HTTP statuses worth one more attempt
_TRANSIENT_STATUS_CODES = {429, 500, 502, 503, 504}

SYSTEM_PROMPT = (
    "You are a helpful assistant that writes short, encouraging feedback messages "
    "for participants in a psychology reaction-time experiment. Always answer with a single JSON object."
)

TONE_GUIDANCE = {
    "ja": {
        "casual": "友達のようにカジュアルで親しみやすい口調",
        "gentle": "やさしく丁寧な口調",
        "formal": "落ち着いたフォーマルな敬語",
    },
    "en": {
        "casual": "casual and friendly, like a supportive friend",
        "gentle": "gentle, soft and reassuring",
        "formal": "calm, polite and formal",
    },
}

MOTIVATION_GUIDANCE = {
    "ja": {
        "empathetic": "気持ちに寄り添い、共感を示す",
        "cheerleader": "元気に応援する",
        "advisor": "次に活かせる短いアドバイスを添える",
    },
    "en": {
        "empathetic": "show empathy and acknowledge how the participant may feel",
        "cheerleader": "cheer the participant on with energy",
        "advisor": "add a brief, practical tip for the next block",
    },
}

EVALUATION_GUIDANCE = {
    "ja": {
        "self-progress": "前回の自分と比べた成長に注目する",
        "social-comparison": "他の参加者の平均と比べた頑張りに触れる（具体的な数値は出さない）",
        "positive-focus": "良かった点だけをシンプルに伝える",
    },
    "en": {
        "self-progress": "focus on growth compared with the participant's own previous block",
        "social-comparison": "relate effort to how participants typically do, without numbers",
        "positive-focus": "mention only what went well, simply",
    },
}

JAPANESE_PROMPT = """参加者情報:
- 呼び名: {nickname}
- 好きな褒め方: {preferred_praise}
- 避けてほしい表現: {avoid_expressions}
- 口調: {tone}
- 励まし方: {motivation}
- 評価の観点: {evaluation}

以下の各状況について、ブロック終了後に表示するフィードバックを{variants}パターンずつ生成してください。

{catalog}

制約:
- 具体的な数値は含めない
- 15文字から30文字程度
- 参加者の呼び名を適度に含める（半分程度）
- ポジティブな内容にし、否定的・責めるような表現は避ける
- 参加者が避けたい表現は使用しない

各状況のキーをそのまま使い、次の形式のJSONオブジェクトだけを出力してください:
{example}
"""

ENGLISH_PROMPT = """Participant information:
- Preferred name: {nickname}
- Preferred praise style: {preferred_praise}
- Expressions to avoid: {avoid_expressions}
- Tone: {tone}
- Motivation style: {motivation}
- Evaluation focus: {evaluation}

Write {variants} feedback messages, shown after a block of trials, for each of the following situations.

{catalog}

Constraints:
- Do not include specific numbers
- 8-20 words per message
- Include the participant's preferred name in about half of the messages
- Keep the content positive; never blame the participant
- Never use the expressions the participant wants to avoid

Use the situation keys exactly as given and output only a JSON object of this shape:
{example}
"""


class GenerationFailure(Exception):
    """Raised when feedback patterns could not be generated."""


class TransientGenerationError(GenerationFailure):
    """A failure that may succeed on a second attempt (network error, timeout, 429/5xx)."""


@dataclass(frozen=True)
class GenerationRequest:
    profile: ParticipantProfile
    scenario_catalog: list
    variants_per_key: int = VARIANTS_PER_SCENARIO


def build_generation_request(profile: ParticipantProfile) -> GenerationRequest:
    """Everything the generator needs: the profile plus the full scenario catalog. No block data."""
    return GenerationRequest(
        profile=profile,
        scenario_catalog=scenario_catalog(),
        variants_per_key=VARIANTS_PER_SCENARIO,
    )


def build_prompt(request: GenerationRequest) -> str:
    """Fill the language-specific prompt template for *request*."""
    profile = request.profile
    language = "en" if profile.language == "en" else "ja"
    template = ENGLISH_PROMPT if language == "en" else JAPANESE_PROMPT
    none_label = "なし" if language == "ja" else "none"

    catalog = "\n".join(
        f"- {entry['key']}: {entry['description']}" for entry in request.scenario_catalog
    )
    example = json.dumps(
        {entry["key"]: ["..."] * request.variants_per_key for entry in request.scenario_catalog},
        indent=2,
    )
    return template.format(
        nickname=profile.nickname,
        preferred_praise=", ".join(profile.preferred_praise) or none_label,
        avoid_expressions=", ".join(profile.avoid_expressions) or none_label,
        tone=TONE_GUIDANCE[language].get(profile.tone_preference, profile.tone_preference),
        motivation=MOTIVATION_GUIDANCE[language].get(profile.motivation_style, profile.motivation_style),
        evaluation=EVALUATION_GUIDANCE[language].get(profile.evaluation_focus, profile.evaluation_focus),
        variants=request.variants_per_key,
        catalog=catalog,
        example=example,
    )


def parse_completion(response: dict) -> dict:
    """
    Extract the pattern-set object from a chat-completions response dict.

    Raises:
        GenerationFailure: if the response has no content or the content is not a JSON object.
    """
    try:
        content = response["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError) as exc:
        raise GenerationFailure("Completion response has no message content") from exc
    if not isinstance(content, str) or not content.strip():
        raise GenerationFailure("Completion response has no usable message content")

    try:
        patterns = json.loads(content)
    except json.JSONDecodeError as exc:
        raise GenerationFailure(f"Completion content is not valid JSON: {content[:200]!r}") from exc
    if not isinstance(patterns, dict):
        raise GenerationFailure("Completion content is not a JSON object")
    return patterns


class OpenAIFeedbackGenerator:
    """
    Generates a full feedback pattern set for one participant profile.

    ``generate`` blocks for at most ``timeout`` seconds per attempt and retries
    once (by default) on a transient failure. Every failure surfaces as
    GenerationFailure; callers decide how to fall back.
    """

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        url: str | None = None,
        timeout: float | None = None,
        max_retries: int | None = None,
    ):
        self.api_key = api_key if api_key is not None else getattr(settings, "OPENAI_API_KEY", "")
        self.model = model or getattr(settings, "OPENAI_MODEL", "gpt-4o-mini")
        self.url = url or getattr(settings, "OPENAI_API_URL", OPENAI_CHAT_COMPLETIONS_URL)
        self.timeout = timeout if timeout is not None else getattr(settings, "FEEDBACK_GENERATION_TIMEOUT", 20)
        self.max_retries = (
            max_retries if max_retries is not None else getattr(settings, "FEEDBACK_GENERATION_RETRIES", 1)
        )
        self.temperature = getattr(settings, "OPENAI_TEMPERATURE", 0.8)
        self.max_tokens = getattr(settings, "OPENAI_MAX_TOKENS", 2000)

    def generate(self, request: GenerationRequest) -> dict:
        """
        Return the raw pattern-set dict produced for *request*.

        Raises:
            GenerationFailure: no API key, non-transient HTTP error, malformed
                output, or a transient failure that persisted through every retry.
        """
        if not self.api_key:
            raise GenerationFailure("OPENAI_API_KEY is not configured")

        body = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": build_prompt(request)},
            ],
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
            "response_format": {"type": "json_object"},
        }

        attempts = 1 + max(0, self.max_retries)
        for attempt in range(1, attempts + 1):
            try:
                response = self._post(body)
                break
            except TransientGenerationError:
                if attempt == attempts:
                    raise
                logger.warning(
                    "Transient generation failure for %s (attempt %d/%d), retrying",
                    request.profile.nickname,
                    attempt,
                    attempts,
                )
        return parse_completion(response)

    def _post(self, body: dict) -> dict:
        http_request = urllib.request.Request(
            self.url,
            data=json.dumps(body).encode("utf-8"),
            headers={
                "Content-Type": "application/json; charset=utf-8",
                "Authorization": f"Bearer {self.api_key}",
            },
            method="POST",
        )
        try:
            with urllib.request.urlopen(http_request, timeout=self.timeout) as response:
                return json.loads(response.read().decode("utf-8"))
        except urllib.error.HTTPError as exc:
            error_body = exc.read().decode("utf-8", errors="replace")
            message = f"OpenAI returned HTTP {exc.code}: {error_body[:500]}"
            if exc.code in _TRANSIENT_STATUS_CODES:
                raise TransientGenerationError(message) from exc
            raise GenerationFailure(message) from exc
        except (urllib.error.URLError, http.client.HTTPException, TimeoutError, ConnectionError) as exc:
            raise TransientGenerationError(f"OpenAI request failed: {exc}") from exc
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise GenerationFailure("OpenAI returned a non-JSON response body") from exc
