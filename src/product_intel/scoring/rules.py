"""Threshold rules that turn a feature vector into advice.

Each bucket is an ordered list of rules. A bucket keeps the messages of
the first MAX_INSIGHTS rules that match, in declared order; rules are
never ranked against each other.
"""

from collections.abc import Callable
from dataclasses import dataclass, field

from product_intel.scoring.models import FeatureVector

MAX_INSIGHTS = 5


@dataclass(frozen=True)
class Rule:
    """A message emitted when its predicate holds for a vector."""

    message: str
    applies: Callable[[FeatureVector], bool]


@dataclass
class InsightResult:
    """Messages collected for one bucket."""

    messages: list[str] = field(default_factory=list)
    limit: int = MAX_INSIGHTS

    @property
    def full(self) -> bool:
        return len(self.messages) >= self.limit

    def add(self, message: str) -> None:
        """Add a message unless the bucket is already full."""
        if not self.full:
            self.messages.append(message)


RECOMMENDATION_RULES: list[Rule] = [
    # Demand
    Rule(
        "Consider improving product visibility with better marketing",
        lambda f: f.demand_strength < 0.3,
    ),
    Rule("Focus on product quality to improve ratings", lambda f: f.rating_score < 0.6),
    Rule(
        "Encourage customer reviews to build social proof",
        lambda f: f.review_volume_score < 0.4,
    ),
    # Price
    Rule(
        "Review pricing strategy to improve competitiveness",
        lambda f: f.price_advantage < 0.4,
    ),
    Rule("Investigate Prime eligibility requirements", lambda f: f.prime_eligibility_score < 0.5),
    # Content
    Rule("Enhance product images and description", lambda f: f.content_richness_score < 0.5),
    Rule(
        "Use more specific product categorization",
        lambda f: f.category_specificity_score < 0.4,
    ),
    # Market
    Rule(
        "Market appears saturated - consider differentiation",
        lambda f: f.market_saturation_score > 0.7,
    ),
    Rule(
        "Build brand recognition through consistent messaging",
        lambda f: f.brand_recognition_score < 0.4,
    ),
]

RISK_RULES: list[Rule] = [
    Rule("Low product ratings may indicate quality issues", lambda f: f.rating_score < 0.3),
    Rule(
        "Very few reviews - unproven product track record",
        lambda f: f.review_volume_score < 0.2,
    ),
    Rule(
        "Poor price competitiveness may limit sales",
        lambda f: f.price_competitiveness_score < 0.2,
    ),
    Rule(
        "Very low BSR rank indicates weak market position",
        lambda f: f.bsr_competitiveness_score < 0.2,
    ),
    Rule("Non-Prime products have reduced visibility", lambda f: f.prime_eligibility_score < 0.3),
    Rule("Poor content quality may hurt conversion", lambda f: f.content_richness_score < 0.3),
    Rule(
        "High market saturation increases competition",
        lambda f: f.market_saturation_score > 0.8,
    ),
    Rule("Insufficient data for reliable analysis", lambda f: f.feature_confidence < 0.5),
]

OPPORTUNITY_RULES: list[Rule] = [
    Rule(
        "High demand with low competition - ideal market position",
        lambda f: f.demand_strength > 0.7 and f.market_saturation_score < 0.5,
    ),
    Rule(
        "Excellent reviews provide strong social proof advantage",
        lambda f: f.rating_score > 0.8 and f.review_volume_score > 0.6,
    ),
    Rule(
        "Strong BSR ranking indicates market leadership",
        lambda f: f.bsr_competitiveness_score > 0.7,
    ),
    Rule("Prime eligibility expands customer reach", lambda f: f.prime_eligibility_score == 1),
    Rule("Strong brand can command premium pricing", lambda f: f.brand_recognition_score > 0.7),
    Rule(
        "High-quality content supports premium positioning",
        lambda f: f.content_richness_score > 0.8,
    ),
    Rule(
        "High-demand tier with good price advantage",
        lambda f: f.demand_tier_score > 0.8 and f.price_advantage > 0.6,
    ),
]


def evaluate_rules(
    features: FeatureVector,
    rules: list[Rule],
    limit: int = MAX_INSIGHTS,
) -> list[str]:
    """Messages of the first `limit` matching rules, in rule order."""
    result = InsightResult(limit=limit)
    for rule in rules:
        if result.full:
            break
        if rule.applies(features):
            result.add(rule.message)
    return result.messages


def generate_recommendations(features: FeatureVector) -> list[str]:
    """Improvement suggestions for a product."""
    return evaluate_rules(features, RECOMMENDATION_RULES)


def identify_risk_factors(features: FeatureVector) -> list[str]:
    """Weaknesses that may hold a product back."""
    return evaluate_rules(features, RISK_RULES)


def identify_opportunities(features: FeatureVector) -> list[str]:
    """Strengths worth leaning into."""
    return evaluate_rules(features, OPPORTUNITY_RULES)
