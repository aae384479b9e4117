from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class QuestionCategory(str, Enum):
    GEOGRAPHY = "geography"
    HISTORY = "history"
    SCIENCE = "science"
    SPORTS = "sports"
    CULTURE = "culture"
    NATURE = "nature"
    TECHNOLOGY = "technology"
    FOOD = "food"
    ANIMALS = "animals"
    GENERAL = "general"


class ImageStyle(str, Enum):
    PHOTOREALISTIC = "photorealistic"
    ARTISTIC = "artistic"
    MINIMALISTIC = "minimalistic"
    DRAMATIC = "dramatic"
    VINTAGE = "vintage"


CATEGORY_KEYWORDS: dict[QuestionCategory, list[str]] = {
    QuestionCategory.GEOGRAPHY: [
        "mountain", "sea", "ocean", "river", "capital", "country", "city", "continent", "island", "lake",
        "desert", "góra", "morze", "rzeka", "stolica", "kraj", "miasto", "kontynent", "wyspa", "jezioro",
        "pustynia",
    ],
    QuestionCategory.HISTORY: [
        "war", "king", "queen", "battle", "castle", "empire", "revolution", "medieval", "ancient", "monument",
        "wojna", "król", "królowa", "bitwa", "zamek", "imperium", "rewolucja", "średniowiecze", "starożytność",
    ],
    QuestionCategory.SCIENCE: [
        "atom", "molecule", "dna", "planet", "star", "laboratory", "microscope", "experiment", "physics",
        "chemistry", "molekuła", "planeta", "gwiazda", "laboratorium", "mikroskop", "eksperyment", "fizyka",
        "chemia",
    ],
    QuestionCategory.SPORTS: [
        "ball", "stadium", "championship", "olympics", "running", "swimming", "tennis", "basketball", "hockey",
        "piłka", "stadion", "mistrzostwo", "olimpiada", "bieganie", "pływanie", "tenis", "koszykówka", "hokej",
    ],
    QuestionCategory.CULTURE: [
        "art", "music", "theater", "painting", "sculpture", "museum", "concert", "movie", "book", "literature",
        "sztuka", "muzyka", "teatr", "obraz", "rzeźba", "muzeum", "koncert", "film", "książka", "literatura",
    ],
    QuestionCategory.NATURE: [
        "tree", "flower", "forest", "meadow", "sky", "drzewo", "kwiat", "las", "łąka", "niebo",
    ],
    QuestionCategory.TECHNOLOGY: [
        "computer", "internet", "robot", "artificial intelligence", "phone", "application", "digital",
        "komputer", "sztuczna inteligencja", "telefon", "aplikacja", "cyfrowy",
    ],
    QuestionCategory.FOOD: [
        "food", "restaurant", "kitchen", "recipe", "ingredient", "cooking", "bakery", "jedzenie",
        "restauracja", "kuchnia", "przepis", "składnik", "gotowanie", "piekarnia",
    ],
    QuestionCategory.ANIMALS: [
        "dog", "cat", "elephant", "lion", "wolf", "bear", "bird", "fish", "insect", "mammal", "pies", "kot",
        "słoń", "lew", "wilk", "niedźwiedź", "ptak", "ryba", "owad", "ssak",
    ],
}

CATEGORY_PATTERNS: list[tuple[QuestionCategory, list[str]]] = [
    (
        QuestionCategory.GEOGRAPHY,
        [r"where is", r"capital of", r"which continent", r"highest mountain", r"longest river",
         r"gdzie (się )?znajduje", r"jaka jest stolica", r"który kontynent", r"najwyższa góra",
         r"najdłuższa rzeka"],
    ),
    (
        QuestionCategory.HISTORY,
        [r"in which year", r"when did", r"who was", r"world war", r"w którym roku",
         r"kiedy (się )?(rozpoczęła|zakończyła|wybuchła)", r"kto (był|była)", r"wojna światowa"],
    ),
    (
        QuestionCategory.SCIENCE,
        [r"what is the formula", r"chemical element", r"solar system", r"theory", r"co to jest",
         r"jaki jest wzór", r"pierwiastek chemiczny", r"układ słoneczny", r"teoria"],
    ),
]

SCENES: dict[QuestionCategory, str] = {
    QuestionCategory.GEOGRAPHY: "Beautiful landscape featuring {keywords}, natural scenery, geographic location",
    QuestionCategory.HISTORY: "Historical scene depicting {keywords}, vintage atmosphere, period accurate, documentary style",
    QuestionCategory.SCIENCE: "Scientific visualization of {keywords}, modern laboratory, research environment, educational",
    QuestionCategory.SPORTS: "Dynamic sports scene featuring {keywords}, athletic action, stadium environment, competitive",
    QuestionCategory.CULTURE: "Cultural scene showcasing {keywords}, artistic environment, creative atmosphere, elegant",
    QuestionCategory.NATURE: "Beautiful nature scene with {keywords}, wildlife, natural environment, serene landscape",
    QuestionCategory.TECHNOLOGY: "Modern technology featuring {keywords}, futuristic design, digital environment, innovation",
    QuestionCategory.FOOD: "Delicious food presentation of {keywords}, culinary art, appetizing, restaurant quality",
    QuestionCategory.ANIMALS: "Beautiful animal photography featuring {keywords}, wildlife, natural habitat, detailed",
    QuestionCategory.GENERAL: "Beautiful scene related to {keywords}, high quality composition, engaging visual",
}

STYLE_FOR_CATEGORY: dict[QuestionCategory, ImageStyle] = {
    QuestionCategory.GEOGRAPHY: ImageStyle.PHOTOREALISTIC,
    QuestionCategory.HISTORY: ImageStyle.VINTAGE,
    QuestionCategory.SCIENCE: ImageStyle.MINIMALISTIC,
    QuestionCategory.SPORTS: ImageStyle.DRAMATIC,
    QuestionCategory.CULTURE: ImageStyle.ARTISTIC,
}

STYLE_PROMPTS: dict[ImageStyle, str] = {
    ImageStyle.PHOTOREALISTIC: "photorealistic, high resolution, detailed, professional photography",
    ImageStyle.ARTISTIC: "artistic illustration, beautiful colors, creative composition",
    ImageStyle.MINIMALISTIC: "minimalistic design, clean, simple, modern",
    ImageStyle.DRAMATIC: "dramatic lighting, cinematic, epic composition, high contrast",
    ImageStyle.VINTAGE: "vintage style, retro, nostalgic, aged photography effect",
}

QUALITY_PROMPT = "high quality, 4K, professional"
ORIENTATION_PROMPT = "vertical orientation, 9:16 aspect ratio, mobile optimized"

STOPWORDS = {
    "what", "which", "where", "when", "why", "who", "how", "does", "the", "is", "are",
    "który", "która", "które", "gdzie", "kiedy", "dlaczego", "jak", "jaki", "jaka", "jest",
}


@dataclass
class PromptContext:
    category: QuestionCategory
    style: ImageStyle
    keywords: list[str] = field(default_factory=list)


class PromptBuilder:
    """Turns question text into an image prompt without calling any model."""

    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        self.log = logger or logging.getLogger(__name__)

    def analyze(self, question: str) -> PromptContext:
        normalized = question.lower()
        category = self._categorize(normalized)
        context = PromptContext(
            category=category,
            style=STYLE_FOR_CATEGORY.get(category, ImageStyle.PHOTOREALISTIC),
            keywords=self._keywords(normalized, category),
        )
        self.log.debug(
            "question analyzed",
            extra={"category": category.value, "style": context.style.value, "keywords": context.keywords},
        )
        return context

    def build(self, question: str) -> str:
        context = self.analyze(question)
        keywords = " ".join(context.keywords[:3]) or "a quiz question"
        scene = SCENES[context.category].format(keywords=keywords)
        return ", ".join([scene, STYLE_PROMPTS[context.style], QUALITY_PROMPT, ORIENTATION_PROMPT])

    def _categorize(self, question: str) -> QuestionCategory:
        for category, keywords in CATEGORY_KEYWORDS.items():
            if any(keyword in question for keyword in keywords):
                return category
        for category, patterns in CATEGORY_PATTERNS:
            if any(re.search(pattern, question) for pattern in patterns):
                return category
        return QuestionCategory.GENERAL

    def _keywords(self, question: str, category: QuestionCategory) -> list[str]:
        found = [keyword for keyword in CATEGORY_KEYWORDS.get(category, []) if keyword in question]
        words = [word.strip("?!.,:;\"'()") for word in question.split()]
        extra = [word for word in words if len(word) > 3 and word not in STOPWORDS and word not in found]
        return found + extra[:3]
