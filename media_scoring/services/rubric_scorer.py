"""Rubric scorer: ask the AI model for the three qualitative sub-scores.

Builds the Chinese oncology-PR rubric prompt for one piece of content,
requests a structured JSON answer from Gemini and validates it into an
AIAnalysisResult. Rate-limit retry lives in the Gemini client; every other
failure surfaces as ScoringError.
"""

import json
from typing import Any

from pydantic import ValidationError

from media_scoring.core.config import get_settings
from media_scoring.core.logging import get_logger
from media_scoring.integrations.gemini import GeminiClient, ScoringError, get_gemini
from media_scoring.schemas.scoring import AIAnalysisResult, AudienceMode

logger = get_logger(__name__)

DEFAULT_MEDIA_LABEL = "内部稿件"

RUBRIC_PROMPT_TEMPLATE = """你是一个专业的肿瘤业务公关传播分析师。请基于以下项目背景进行评分。

评分准则 (1-10分，严禁全部给出相同分数):
1. 信息匹配 (km_score): 评估正文内容与 [核心信息] 的吻合度。
2. 获客效能 (acquisition_score): 【核心要求】评估正文是否能够有效引导受众采取 [项目描述] 中提到的具体行动（如：咨询医生、参加义诊、关注公众号等）。
3. 受众精准度 (audience_precision_score): 【核心要求】主要基于 [媒体名称] 的行业地位和受众属性与 [受众模式] 的匹配度。例如：在 HCP 模式下，医学专业媒体应得高分，而大众生活类媒体应得低分。

项目背景：
- 媒体名称: {media_label}
- 受众模式: {audience_mode}
- 核心信息 (Key Message): {key_message}
- 项目描述 (获客逻辑): {project_desc}

待分析内容：
{content}"""

RESPONSE_SCHEMA: dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "km_score": {"type": "NUMBER", "description": "信息匹配得分 (1-10)"},
        "acquisition_score": {
            "type": "NUMBER",
            "description": "获客效能得分 (1-10)，依据项目描述评估",
        },
        "audience_precision_score": {
            "type": "NUMBER",
            "description": "受众精准度得分 (1-10)，依据媒体名称评估",
        },
        "comment": {"type": "STRING", "description": "专业且简短的评分意见"},
    },
    "required": [
        "km_score",
        "acquisition_score",
        "audience_precision_score",
        "comment",
    ],
}


def build_prompt(
    text: str,
    audience_mode: AudienceMode | str,
    key_message: str,
    project_desc: str,
    media_label: str = DEFAULT_MEDIA_LABEL,
    max_chars: int = 5000,
) -> str:
    """Render the rubric prompt, clipping the content to max_chars."""
    mode = audience_mode.value if isinstance(audience_mode, AudienceMode) else audience_mode
    return RUBRIC_PROMPT_TEMPLATE.format(
        media_label=media_label,
        audience_mode=mode,
        key_message=key_message,
        project_desc=project_desc,
        content=text[:max_chars],
    )


def parse_analysis(response_text: str) -> AIAnalysisResult:
    """Parse the model's JSON answer into an AIAnalysisResult.

    Raises:
        ScoringError: If the text is not JSON or a required field is missing.
    """
    json_text = response_text.strip()

    # Tolerate a markdown code fence around the JSON
    if json_text.startswith("```"):
        lines = json_text.split("\n")[1:]
        if lines and lines[-1].strip() == "```":
            lines = lines[:-1]
        json_text = "\n".join(lines)

    try:
        parsed = json.loads(json_text)
    except json.JSONDecodeError as e:
        raise ScoringError(f"AI response is not valid JSON: {e}") from e

    if not isinstance(parsed, dict):
        raise ScoringError("AI response is not a JSON object")

    try:
        return AIAnalysisResult.model_validate(parsed)
    except ValidationError as e:
        fields = ", ".join(str(err["loc"][0]) for err in e.errors() if err["loc"])
        raise ScoringError(f"AI response missing or invalid fields: {fields}") from e


class RubricScorer:
    """Scores content against the rubric through the AI model."""

    def __init__(
        self,
        client: GeminiClient,
        max_content_chars: int | None = None,
    ) -> None:
        self._client = client
        self._max_content_chars = (
            max_content_chars or get_settings().scoring_max_content_chars
        )

    @property
    def client(self) -> GeminiClient:
        """Get the AI transport client."""
        return self._client

    async def score(
        self,
        text: str,
        audience_mode: AudienceMode | str,
        key_message: str,
        project_desc: str,
        media_label: str = DEFAULT_MEDIA_LABEL,
    ) -> AIAnalysisResult:
        """Score one piece of content.

        Raises:
            ScoringError: On any AI failure (rate limits already retried).
        """
        prompt = build_prompt(
            text,
            audience_mode,
            key_message,
            project_desc,
            media_label=media_label,
            max_chars=self._max_content_chars,
        )

        logger.debug(
            "Scoring content",
            extra={
                "media_label": media_label[:100],
                "content_length": len(text),
                "clipped": len(text) > self._max_content_chars,
            },
        )

        response_text = await self._client.generate_json(prompt, RESPONSE_SCHEMA)
        return parse_analysis(response_text)


_rubric_scorer: RubricScorer | None = None


async def get_rubric_scorer() -> RubricScorer:
    """Get the default RubricScorer instance (singleton) on the global Gemini client."""
    global _rubric_scorer
    if _rubric_scorer is None:
        _rubric_scorer = RubricScorer(await get_gemini())
    return _rubric_scorer
