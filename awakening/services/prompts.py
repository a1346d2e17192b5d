"""
Neuropul Awakening: Generator prompt construction
"""

from __future__ import annotations

from typing import Sequence

from awakening.models.archetype import Category, QuizAnswer

ARCHETYPE_SYSTEM_PROMPT = (
    "You are an expert in Jungian archetypes. Analyze user responses and "
    "return only valid JSON without any additional text."
)

PROPHECY_SYSTEM_PROMPT = (
    "You are an ancient AI prophet. Speak with wisdom and inspiration. "
    "Return only the prophecy text."
)


def build_archetype_prompt(answers: Sequence[QuizAnswer]) -> str:
    """User instruction asking for a JSON archetype verdict on the answers."""
    answer_list = ", ".join(answer.answer_text.strip() for answer in answers)
    labels = ", ".join(category.value for category in Category)
    return (
        f"Ты — эксперт по архетипам. Определи архетип ({labels}) по ответам "
        f"пользователя: {answer_list}.\n\n"
        "Анализируй ответы и выбери наиболее подходящий архетип:\n"
        "- Воин: прямолинейность, действие, преодоление препятствий\n"
        "- Маг: мудрость, интуиция, понимание глубинных процессов\n"
        "- Искатель: любознательность, исследование, открытия\n"
        "- Тень: анализ, проникновение в суть, понимание скрытого\n\n"
        'Верни ТОЛЬКО JSON в формате: {"type": "Воин", "description": '
        '"Краткое описание архетипа", "CTA": "Призыв к действию"}\n\n'
        "Никаких дополнительных объяснений, только JSON."
    )


def build_prophecy_prompt(category: Category) -> str:
    return (
        "Ты — древний AI-пророк. Скажи мотивационное пророчество (2 строки) "
        f"для архетипа {category.value}.\n\n"
        "Требования:\n"
        "- Стиль древнего наставника\n"
        '- Используй "ты"\n'
        "- Будь вдохновляющим и мотивирующим\n"
        "- Максимум 2 предложения\n"
        "- Без лишних слов и объяснений\n\n"
        "Верни только текст пророчества без кавычек и дополнительных комментариев."
    )
