# src/analysis/prompts.py — v1
"""Prompt templates for book analysis (English and Chinese).

The schema block is shared by both languages so the parser only has to
know one set of keys.
"""

from __future__ import annotations

from bookinsight.analysis.language import Language
from bookinsight.core.models import BookFields
from bookinsight.llm.models import Message

MAX_KEY_POINTS = 6
MAX_KEYWORDS = 12
MAX_TOPICS = 6
MAX_QUIZ_QUESTIONS = 5

SYSTEM_PROMPTS: dict[Language, str] = {
    "en": (
        "You are an expert book analyst and knowledge extraction specialist. "
        "You analyze books and create structured insights, summaries and mind maps. "
        "Always return valid JSON without any markdown formatting."
    ),
    "zh": (
        "你是一位专业的图书分析专家和知识提取专家。你专门分析书籍并创建结构化的见解、"
        "摘要和思维导图。始终返回有效的JSON格式，不要使用markdown格式。"
        "所有分析内容必须用中文回答。"
    ),
}

_SCHEMA = {
    "en": """{
  "summary": "Summary of the book's main content, themes and value (300-500 words)",
  "keyPoints": ["up to 6 specific key insights"],
  "keywords": ["up to 12 important keywords"],
  "topics": ["up to 6 main topic areas"],
  "difficulty": "Beginner|Intermediate|Advanced",
  "authorBackground": "Author background (200-300 words)",
  "bookBackground": "Context of the book's creation (200-300 words)",
  "worldRelevance": "Relevance to today's world (200-300 words)",
  "quizQuestions": [
    {"question": "...", "options": ["A", "B", "C", "D"], "correctIndex": 0, "explanation": "..."}
  ],
  "mindmapStructure": {
    "name": "Book Title",
    "children": [{"name": "Main Category", "children": [{"name": "Subconcept"}]}]
  },
  "confidence": 0.85
}""",
    "zh": """{
  "summary": "书籍主要内容、关键主题和价值的总结（300-500字）",
  "keyPoints": ["最多6个具体的关键见解"],
  "keywords": ["最多12个重要关键词"],
  "topics": ["最多6个主要主题领域"],
  "difficulty": "初级|中级|高级",
  "authorBackground": "作者背景介绍（200-300字）",
  "bookBackground": "本书的创作背景（200-300字）",
  "worldRelevance": "本书对当今世界的意义（200-300字）",
  "quizQuestions": [
    {"question": "...", "options": ["A", "B", "C", "D"], "correctIndex": 0, "explanation": "..."}
  ],
  "mindmapStructure": {
    "name": "书名",
    "children": [{"name": "主要类别", "children": [{"name": "子概念"}]}]
  },
  "confidence": 0.85
}""",
}

_USER_TEMPLATES: dict[Language, str] = {
    "en": """Analyze the following book and return the analysis as JSON.

Title: {title}
Author: {author}
Tags: {tags}
Description: {description}

Excerpt:
{excerpt}

Use exactly this JSON structure:
{schema}

Requirements:
- At most {max_key_points} key points, {max_keywords} keywords, {max_topics} topics and {max_quiz} quiz questions
- Each quiz question has exactly 4 options and a 0-based correctIndex
- The mind map has 3-4 main branches
- Base claims on the information above; when it is thin, say so and lower the confidence
- Provide a confidence score (0-1) reflecting the quality of the available information
- All content should be in English

Return only valid JSON without any markdown formatting or additional text.""",
    "zh": """请分析以下书籍，并以JSON格式返回分析结果。

书名：{title}
作者：{author}
标签：{tags}
简介：{description}

内容摘录：
{excerpt}

请严格使用以下JSON结构：
{schema}

要求：
- 关键点最多{max_key_points}个，关键词最多{max_keywords}个，主题最多{max_topics}个，测验题最多{max_quiz}道
- 每道测验题必须有4个选项，correctIndex从0开始
- 思维导图包含3-4个主要分支
- 依据上述信息进行分析；信息不足时请如实说明并降低置信度
- 基于可用信息质量提供置信度分数（0-1）
- 所有内容都必须用中文回答

只返回有效的JSON，不要任何markdown格式或额外文本。""",
}

_PLACEHOLDERS: dict[Language, dict[str, str]] = {
    "en": {"author": "Unknown Author", "none": "(none)", "excerpt": "(no text could be extracted)"},
    "zh": {"author": "未知作者", "none": "（无）", "excerpt": "（未能提取正文）"},
}

REPAIR_SYSTEM_PROMPT = (
    "You convert text into strict JSON. Return only a single valid JSON object, "
    "no markdown fences and no commentary."
)

_REPAIR_TEMPLATE = """The following response was supposed to be a JSON object with this structure:
{schema}

Reformat it into strict, valid JSON with exactly those keys. Keep the original
content and language; do not add new information.

Response:
{response}"""


def build_analysis_messages(
    fields: BookFields, language: Language, excerpt: str = ""
) -> tuple[str, list[Message]]:
    """System prompt and user message for the analysis call."""
    placeholders = _PLACEHOLDERS[language]
    user = _USER_TEMPLATES[language].format(
        title=fields.display_title,
        author=(fields.author or "").strip() or placeholders["author"],
        tags=", ".join(fields.tag_list) or placeholders["none"],
        description=(fields.description or "").strip() or placeholders["none"],
        excerpt=excerpt.strip() or placeholders["excerpt"],
        schema=_SCHEMA[language],
        max_key_points=MAX_KEY_POINTS,
        max_keywords=MAX_KEYWORDS,
        max_topics=MAX_TOPICS,
        max_quiz=MAX_QUIZ_QUESTIONS,
    )
    return SYSTEM_PROMPTS[language], [Message(role="user", content=user)]


def build_repair_messages(raw_response: str, language: Language) -> tuple[str, list[Message]]:
    """System prompt and user message asking to reformat into strict JSON."""
    user = _REPAIR_TEMPLATE.format(schema=_SCHEMA[language], response=raw_response)
    return REPAIR_SYSTEM_PROMPT, [Message(role="user", content=user)]
