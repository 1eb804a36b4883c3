"""Category scoring over audit results."""

from typing import Any, Dict, Mapping, Optional, Sequence

from pageaudit.core.audit import ScoreDisplayMode
from pageaudit.core.exceptions import ConfigurationError
from pageaudit.core.types import AuditResult, ScoredCategory

UNSCORED_DISPLAY_MODES = frozenset(
    {ScoreDisplayMode.INFORMATIVE, ScoreDisplayMode.NOT_APPLICABLE}
)


def arithmetic_mean(items: Sequence[Mapping[str, float]]) -> Optional[float]:
    """Weighted mean of ``{"score", "weight"}`` items; None when the weights sum to 0."""
    total_weight = sum(item["weight"] for item in items)
    if total_weight <= 0:
        return None
    weighted = sum(item["score"] * item["weight"] for item in items)
    return round(weighted / total_weight, 2)


def score_all_categories(
    categories: Mapping[str, Mapping[str, Any]],
    results_by_id: Mapping[str, AuditResult],
) -> Dict[str, ScoredCategory]:
    """Score every configured category from its audit references."""
    scored: Dict[str, ScoredCategory] = {}
    for category_id, category in categories.items():
        audit_refs = []
        items = []
        for ref in category.get("audit_refs", []):
            result = results_by_id.get(ref["id"])
            if result is None:
                raise ConfigurationError(
                    f"Category {category_id} references audit without a result: {ref['id']}"
                )
            weight = float(ref.get("weight", 1))
            if result.score_display_mode in UNSCORED_DISPLAY_MODES:
                weight = 0.0
            audit_refs.append({**dict(ref), "weight": weight})
            items.append({"score": result.score or 0.0, "weight": weight})

        scored[category_id] = ScoredCategory(
            id=category_id,
            title=category.get("title", category_id),
            description=category.get("description"),
            score=arithmetic_mean(items),
            audit_refs=audit_refs,
        )
    return scored
