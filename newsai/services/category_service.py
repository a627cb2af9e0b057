"""
Category normalization.

Free-text feed labels are mapped onto ``STANDARD_CATEGORIES`` by a rule
table (exact match, then substring match in table order) and, for labels
the rules cannot place, by asking the AI service.  Accepted AI answers are
remembered in the normalizer's ``CategoryCache`` for the process lifetime.
"""
import json
import logging
import threading
from typing import Dict, Iterable, List, Optional, Tuple

from pydantic import TypeAdapter
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ..core.categories import (
    CATEGORY_MAPPINGS,
    CATEGORY_NORMALIZATION_PROMPT,
    FALLBACK_CATEGORY,
    STANDARD_CATEGORIES,
    is_standard_category,
)
from ..core.database import NewsDatabase, db as default_db
from ..models.entities import Category, article_categories
from ..utils.text import turkish_lower
from .llm_service import LLMService, llm_service

logger = logging.getLogger(__name__)

_MAPPING_ADAPTER = TypeAdapter(Dict[str, str])


def normalize_label(label: str) -> str:
    return turkish_lower(label or "").strip()


class CategoryCache:
    """Lowercase label -> standard category, safe to share between threads.

    Iteration order is insertion order, which drives substring matching.
    """

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._lock = threading.Lock()
        self._mappings: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._mappings.get(key)

    def put(self, key: str, category: str) -> None:
        with self._lock:
            self._mappings[key] = category

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._mappings

    def items(self) -> List[Tuple[str, str]]:
        with self._lock:
            return list(self._mappings.items())


class CategoryService:
    def __init__(
        self,
        database: Optional[NewsDatabase] = None,
        llm: Optional[LLMService] = None,
        cache: Optional[CategoryCache] = None,
    ):
        self.database = database or default_db
        self.llm = llm or llm_service
        self.cache = cache if cache is not None else CategoryCache(CATEGORY_MAPPINGS)

    def match_rules(self, label: str) -> Optional[str]:
        """Resolve ``label`` with the mapping table only; ``None`` if no rule applies."""
        normalized = normalize_label(label)
        if not normalized:
            return FALLBACK_CATEGORY

        direct = self.cache.get(normalized)
        if direct is not None:
            return direct

        for key, category in self.cache.items():
            if key in normalized or normalized in key:
                return category
        return None

    async def normalize_category(self, label: str) -> str:
        """Map one label onto a standard category, never raising."""
        matched = self.match_rules(label)
        if matched is not None:
            return matched

        normalized = normalize_label(label)
        prompt = (
            f"{CATEGORY_NORMALIZATION_PROMPT}\n\n"
            f'Kategori: "{label}"\n\n'
            "Bu kategoriyi uygun standart kategoriyle eşleştir ve yalnızca kategori adını döndür."
        )
        try:
            answer = (await self.llm.generate_content(prompt, temperature=0.0, max_tokens=20)).strip().strip('"')
        except Exception as e:
            logger.error(f"AI category normalization failed for {label!r}: {e}")
            return FALLBACK_CATEGORY

        if is_standard_category(answer):
            self.cache.put(normalized, answer)
            logger.info(f"AI mapped category: {label} -> {answer}")
            return answer

        logger.warning(f"AI returned non-standard category {answer!r} for {label!r}")
        return FALLBACK_CATEGORY

    async def normalize_batch(self, labels: Iterable[str]) -> Dict[str, str]:
        """Normalize several labels with at most one batched AI request.

        If the batched answer cannot be used, each unresolved label goes
        through ``normalize_category`` instead.
        """
        result: Dict[str, str] = {}
        needs_ai: List[str] = []

        for label in labels:
            if label in result or label in needs_ai:
                continue
            matched = self.match_rules(label)
            if matched is not None:
                result[label] = matched
            else:
                needs_ai.append(label)

        if not needs_ai:
            return result

        prompt = (
            f"{CATEGORY_NORMALIZATION_PROMPT}\n\n"
            f"Kategoriler: {json.dumps(needs_ai, ensure_ascii=False)}\n\n"
            "Yalnızca JSON nesnesi olarak yanıt ver."
        )
        try:
            raw = await self.llm.generate_json(prompt, temperature=0.0)
            mappings = _MAPPING_ADAPTER.validate_python(raw)
        except Exception as e:
            logger.error(f"Batch AI normalization failed, falling back to single requests: {e}")
            for label in needs_ai:
                result[label] = await self.normalize_category(label)
            return result

        for label in needs_ai:
            answer = mappings.get(label)
            if answer is not None and is_standard_category(answer):
                self.cache.put(normalize_label(label), answer)
                result[label] = answer
            else:
                result[label] = FALLBACK_CATEGORY
        return result

    def get_or_create_category(self, session: Session, name: str) -> Category:
        """Return the category row called ``name``, creating it on first use."""
        category = session.scalar(select(Category).where(Category.name == name))
        if category is None:
            category = Category(name=name)
            session.add(category)
            session.flush()
            logger.info(f"Created new category: {name}")
        return category

    async def initialize_standard_categories(self) -> int:
        logger.info("Initializing standard categories...")
        with self.database.session() as session:
            existing = set(session.scalars(select(Category.name)))
            for name in STANDARD_CATEGORIES:
                if name not in existing:
                    session.add(Category(name=name))
        logger.info(f"Initialized {len(STANDARD_CATEGORIES)} standard categories")
        return len(STANDARD_CATEGORIES)

    async def list_categories(self) -> List[dict]:
        with self.database.session() as session:
            rows = session.execute(
                select(Category.id, Category.name, func.count(article_categories.c.article_id))
                .outerjoin(article_categories, article_categories.c.category_id == Category.id)
                .group_by(Category.id)
                .order_by(Category.name)
            ).all()
        return [{"id": row[0], "name": row[1], "article_count": row[2]} for row in rows]

    async def cleanup_duplicates(self) -> int:
        """Merge categories whose names differ only by case or spacing.

        The category with the most articles survives; articles of the others
        are re-pointed to it.  Returns the number of categories removed.
        """
        logger.info("Starting category cleanup...")
        removed = 0
        with self.database.session() as session:
            groups: Dict[str, List[Category]] = {}
            for category in session.scalars(select(Category)):
                groups.setdefault(normalize_label(category.name), []).append(category)

            for categories in groups.values():
                if len(categories) < 2:
                    continue
                categories.sort(key=lambda c: len(c.articles), reverse=True)
                keep, duplicates = categories[0], categories[1:]
                logger.info(f'Merging {len(duplicates)} duplicates of "{keep.name}"')

                for duplicate in duplicates:
                    for article in list(duplicate.articles):
                        if keep not in article.categories:
                            article.categories.append(keep)
                        article.categories.remove(duplicate)
                    session.delete(duplicate)
                    removed += 1

        logger.info(f"Category cleanup completed, removed {removed}")
        return removed


# Global instance
category_service = CategoryService()
