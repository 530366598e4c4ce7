from .categories import CategoryBreakdown
from .scoring import percent_half_up


def feedback_message(score: int, breakdown: CategoryBreakdown) -> str:
    if score >= 90:
        return "Excellent work! You have a deep understanding of this epic."
    if score >= 70:
        return "Good job! You're developing strong knowledge of the epic."
    if score >= 50:
        return "Not bad! Consider reviewing the areas where you missed questions."

    weakest = None
    weakest_ratio = None
    for category, tally in breakdown.items():
        if tally.total == 0:
            continue
        # strict comparison keeps the first category on ties
        if weakest_ratio is None or tally.ratio < weakest_ratio:
            weakest, weakest_ratio = category, tally.ratio

    focus = weakest.value if weakest is not None else "all areas"
    return f"Keep practicing! Focus especially on {focus} to improve your understanding."


def performance_level(score: int) -> str:
    if score >= 90:
        return "Excellent"
    if score >= 75:
        return "Good"
    if score >= 60:
        return "Fair"
    return "Needs Improvement"


def encouragement(score: int) -> str:
    if score >= 90:
        return "Outstanding! You have deep knowledge of this epic."
    if score >= 75:
        return "Great work! You're developing strong understanding."
    if score >= 60:
        return "Good effort! Keep practicing to strengthen your knowledge."
    return "Keep learning! Every quiz helps you understand these timeless stories better."


def next_steps(score: int, epic_id: str) -> list[str]:
    steps = []
    if score < 75:
        steps.append("Review the explanations for questions you missed")
        steps.append(f"Try another {epic_id} quiz to reinforce your learning")
    if score >= 75:
        steps.append('Explore the "Learn More" content for deeper understanding')
        steps.append("Try a more challenging difficulty level")
    if score >= 90:
        steps.append("Consider exploring cross-epic connections")
        steps.append("Share interesting facts with friends")
    return steps


def efficiency_rating(time_spent: int, question_count: int, score: int) -> str:
    avg = time_spent / max(1, question_count)
    if score >= 80 and avg <= 90:
        return "efficient"
    if score >= 75 and avg > 90:
        return "thorough"
    if score < 70 and avg < 60:
        return "rushed"
    return "balanced"


def category_strengths(breakdown: CategoryBreakdown) -> dict[str, dict]:
    out = {}
    for category, tally in breakdown.items():
        pct = percent_half_up(tally.correct, tally.total) if tally.total > 0 else 0
        if pct >= 80:
            level = "strong"
        elif pct >= 60:
            level = "developing"
        else:
            level = "needs_focus"
        out[category.value] = {"percentage": pct, "level": level}
    return out
