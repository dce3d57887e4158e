from __future__ import annotations

from typing import List

from ..models import Article
from ..processors.ai import LLMClient
from ..processors.ai.parsing import DialogueTurn, parse_dialogue
from ..utils.logging import get_logger
from .tts import GUEST, HOST

logger = get_logger("hibi.narration.script")

TARGET_TURNS = 50


def build_script_prompt(article: Article) -> str:
    title = article.display_title
    overview = article.summary_ja or article.summary or ""
    commentary = article.translation_ja or ""
    return f"""
あなたはポッドキャスト「ひびちどく」の脚本家です。以下の記事内容をもとに、{HOST}（若い女性）と{GUEST}（男性）が議論する10-15分のポッドキャスト台本を作成してください。

【重要なルール】
- 番組名は「ひびちどく」とひらがなで読んでください
- {GUEST}は専門家や大学教授などを名乗らないでください。自己紹介は不要です
- 2人は対等に議論する形式です

## 記事タイトル
{title}

## 記事概要
{overview}

## 詳細解説
{commentary}

## 番組コンセプト
- 休日の朝にカフェで聴く、テック系ラジオ
- 二人のパーソナリティが楽しくおしゃべりしながらニュースを掘り下げるスタイル

## 構成 (全体で{TARGET_TURNS}ターン程度)
1. オープニング: {HOST}が「みなさん、こんにちは！ひびちどくラジオへようこそ！」と明るく始め、季節の話題などの軽い雑談から本題へ繋げる
2. 本題: 記事を読み上げるのではなく会話にする。大きめのリアクションを入れ、専門的な話を分かりやすく噛み砕く
3. エンディング: 感想を言い合い、{HOST}が「詳しい内容は、ひびちどくのWebページに掲載されています」と案内し、二人で「それでは、また次回！」と締める

## 台本の指示
- 各発言は2-4文、80-150文字程度
- 専門用語には説明を加える

## 出力形式（JSON配列のみ）
[
  {{"speaker": "{HOST}", "text": "..."}},
  {{"speaker": "{GUEST}", "text": "..."}}
]

JSONのみを出力してください。
""".strip()


class ScriptWriter:
    """Generates the two-persona dialogue for one article."""

    def __init__(self, llm: LLMClient, *, model: str = "gemini-2.0-flash") -> None:
        self.llm = llm
        self.model = model

    def generate_script(self, article: Article) -> List[DialogueTurn]:
        """Return the dialogue turns, or an empty list when generation fails."""
        try:
            raw = self.llm.generate(
                build_script_prompt(article),
                model=self.model,
                response_mime_type="application/json",
            )
            turns = parse_dialogue(raw)
        except Exception as exc:  # noqa: BLE001 - an empty script aborts narration
            logger.error("Failed to generate conversation script for %s: %s", article.id, exc)
            return []

        valid = [t for t in turns if t.speaker in (HOST, GUEST) and t.text.strip()]
        if len(valid) != len(turns):
            logger.warning("Dropped %d malformed turns", len(turns) - len(valid))
        total_chars = sum(len(t.text) for t in valid)
        logger.info(
            "Generated %d turns (%d chars, est. %d min)", len(valid), total_chars, round(total_chars / 150)
        )
        return valid
