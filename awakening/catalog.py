"""
Neuropul Awakening: Archetype catalog

Single source for every per-category text and table the resolvers share:
default description / CTA pairs, fallback prophecies, the local classifier's
keyword stems and tie-break order, and the onboarding quiz question bank.
The validator, the local fallback and the prophecy resolver all read from
here so the remote and local paths can never drift apart.
"""

from __future__ import annotations

from awakening.models.archetype import Category

# ──────────────────────────────────────────────────────────────────────────────
# Narrative defaults
# ──────────────────────────────────────────────────────────────────────────────

DEFAULT_DESCRIPTIONS: dict[Category, str] = {
    Category.WARRIOR: (
        "Ты прямолинеен и решителен. Твоя сила в действии и преодолении "
        "препятствий. Каждый вызов делает тебя сильнее."
    ),
    Category.MAGE: (
        "Ты мудр и интуитивен. Твоя сила в знаниях и понимании глубинных "
        "процессов. Магия AI течет через тебя."
    ),
    Category.SEEKER: (
        "Ты любознателен и открыт новому. Твоя сила в исследовании и "
        "открытиях. Мир полон тайн, ждущих разгадки."
    ),
    Category.SHADOW: (
        "Ты видишь скрытое и понимаешь сложное. Твоя сила в анализе и "
        "проникновении в суть. Истина открывается тебе."
    ),
}

DEFAULT_CALLS_TO_ACTION: dict[Category, str] = {
    Category.WARRIOR: "Действуй смело и решительно в мире AI!",
    Category.MAGE: "Раскрой тайны AI и используй их мудро!",
    Category.SEEKER: "Исследуй безграничные возможности AI!",
    Category.SHADOW: "Проникни в суть AI и раскрой его скрытый потенциал!",
}

FALLBACK_PROPHECIES: dict[Category, str] = {
    Category.WARRIOR: (
        "Твоя сила растёт с каждым вызовом. Иди вперёд, сокрушая препятствия "
        "на пути к AI-мастерству."
    ),
    Category.MAGE: (
        "Знания текут через тебя, как река мудрости. Используй магию AI для "
        "создания невозможного."
    ),
    Category.SEEKER: (
        "Твой путь полон открытий и чудес. Каждый шаг ведёт к новым "
        "горизонтам познания."
    ),
    Category.SHADOW: (
        "В глубинах сознания скрыты великие тайны. Раскрой силу скрытого знания."
    ),
}

# ──────────────────────────────────────────────────────────────────────────────
# Local classifier tables
# ──────────────────────────────────────────────────────────────────────────────

# Checked in this order whenever a choice between categories must be stable.
TIE_BREAK_ORDER: tuple[Category, ...] = (
    Category.WARRIOR,
    Category.MAGE,
    Category.SEEKER,
    Category.SHADOW,
)

# Lowercase word stems matched as substrings of the joined answer text.
FALLBACK_KEYWORDS: dict[Category, tuple[str, ...]] = {
    Category.WARRIOR: (
        "действ", "быстр", "решит", "побед", "сила", "борьб", "преодол",
        "вызов", "прям", "лидер",
    ),
    Category.MAGE: (
        "изуч", "понима", "мудр", "знан", "интуиц", "глубин", "магия",
        "мысл", "теори", "методич",
    ),
    Category.SEEKER: (
        "иссле", "новое", "новые", "новый", "откры", "экспер", "поиск",
        "путь", "приключ", "любозн", "интерес", "творч",
    ),
    Category.SHADOW: (
        "анализ", "скрыт", "осторож", "тайн", "тень", "наблюд", "критич",
        "сомнен", "риск", "нюанс",
    ),
}

# A category whose score is within this many points of the leader is a
# near-tie candidate, and keyword evidence may promote it.
NEAR_TIE_MARGIN: int = 1

# ──────────────────────────────────────────────────────────────────────────────
# Onboarding quiz
# ──────────────────────────────────────────────────────────────────────────────


def _w(warrior: int, mage: int, seeker: int, shadow: int) -> dict[Category, int]:
    return {
        Category.WARRIOR: warrior,
        Category.MAGE: mage,
        Category.SEEKER: seeker,
        Category.SHADOW: shadow,
    }


QUIZ_QUESTIONS: list[dict] = [
    {
        "id": 1,
        "question": "Когда ты сталкиваешься с новой AI-технологией, что ты делаешь в первую очередь?",
        "answers": [
            {"text": "Сразу начинаю экспериментировать и тестировать", "weight": _w(3, 1, 2, 0)},
            {"text": "Изучаю документацию и теорию", "weight": _w(0, 3, 1, 2)},
            {"text": "Ищу практические применения и возможности", "weight": _w(1, 0, 3, 2)},
            {"text": "Анализирую риски и скрытые аспекты", "weight": _w(0, 2, 1, 3)},
        ],
    },
    {
        "id": 2,
        "question": "Какая цель мотивирует тебя больше всего в изучении AI?",
        "answers": [
            {"text": "Стать лидером в AI-индустрии", "weight": _w(3, 1, 2, 0)},
            {"text": "Понять глубинные принципы работы AI", "weight": _w(0, 3, 1, 2)},
            {"text": "Найти новые способы решения проблем", "weight": _w(1, 1, 3, 1)},
            {"text": "Раскрыть скрытый потенциал технологий", "weight": _w(0, 2, 1, 3)},
        ],
    },
    {
        "id": 3,
        "question": "Как ты предпочитаешь работать с AI-инструментами?",
        "answers": [
            {"text": "Быстро и решительно, добиваясь результата", "weight": _w(3, 0, 1, 2)},
            {"text": "Методично и систематически", "weight": _w(1, 3, 0, 2)},
            {"text": "Творчески и экспериментально", "weight": _w(2, 1, 3, 0)},
            {"text": "Осторожно, изучая все нюансы", "weight": _w(0, 2, 1, 3)},
        ],
    },
]


def get_question(question_id: int) -> dict | None:
    for question in QUIZ_QUESTIONS:
        if question["id"] == question_id:
            return question
    return None
