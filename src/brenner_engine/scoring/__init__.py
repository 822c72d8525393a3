"""
Scoring module.

Per-contribution scorecard with pass/fail gates, session aggregation, and the
seven-dimension session score.
"""

from brenner_engine.scoring.adapter import (
    build_session_data,
    hypothesis_to_item,
    prediction_to_item,
    testrecord_to_item,
    transitions_from_history,
)
from brenner_engine.scoring.artifact import (
    AnomalyItem,
    ArtifactSections,
    AssumptionItem,
    CritiqueItem,
    HypothesisItem,
    HypothesisTransitionRecord,
    PredictionItem,
    ResearchThreadItem,
    SessionArtifact,
    SessionData,
    TestItem,
)
from brenner_engine.scoring.dimensions import (
    DimensionScore,
    ScoreSignal,
    SessionDimensionScore,
    compute_dimension_score,
    compute_grade,
    score_adversarial_pressure,
    score_assumption_tracking,
    score_experimental_feasibility,
    score_hypothesis_kill_rate,
    score_paradox_grounding,
    score_session,
    score_test_discriminability,
    score_third_alternative_discovery,
)
from brenner_engine.scoring.scorecard import (
    BRENNER_QUOTES,
    MAX_ROLE_SCORES,
    MAX_SCORES,
    OPERATORS,
    PASS_FAIL_GATES,
    SCORE_WEIGHTS,
    AdversarialCriticCriteria,
    ContributionScore,
    ContributorRole,
    HypothesisGeneratorCriteria,
    PassFailGates,
    ScoreWarning,
    SessionScore,
    TestDesignerCriteria,
    UniversalCriteria,
    aggregate_session,
    calculate_adversarial_critic_score,
    calculate_hypothesis_generator_score,
    calculate_test_designer_score,
    calculate_universal_score,
    check_pass_fail_gates,
    generate_session_warnings,
    generate_warnings,
    score_contribution,
)

__all__ = [
    "build_session_data",
    "hypothesis_to_item",
    "prediction_to_item",
    "testrecord_to_item",
    "transitions_from_history",
    "AnomalyItem",
    "ArtifactSections",
    "AssumptionItem",
    "CritiqueItem",
    "HypothesisItem",
    "HypothesisTransitionRecord",
    "PredictionItem",
    "ResearchThreadItem",
    "SessionArtifact",
    "SessionData",
    "TestItem",
    "DimensionScore",
    "ScoreSignal",
    "SessionDimensionScore",
    "compute_dimension_score",
    "compute_grade",
    "score_adversarial_pressure",
    "score_assumption_tracking",
    "score_experimental_feasibility",
    "score_hypothesis_kill_rate",
    "score_paradox_grounding",
    "score_session",
    "score_test_discriminability",
    "score_third_alternative_discovery",
    "BRENNER_QUOTES",
    "MAX_ROLE_SCORES",
    "MAX_SCORES",
    "OPERATORS",
    "PASS_FAIL_GATES",
    "SCORE_WEIGHTS",
    "AdversarialCriticCriteria",
    "ContributionScore",
    "ContributorRole",
    "HypothesisGeneratorCriteria",
    "PassFailGates",
    "ScoreWarning",
    "SessionScore",
    "TestDesignerCriteria",
    "UniversalCriteria",
    "aggregate_session",
    "calculate_adversarial_critic_score",
    "calculate_hypothesis_generator_score",
    "calculate_test_designer_score",
    "calculate_universal_score",
    "check_pass_fail_gates",
    "generate_session_warnings",
    "generate_warnings",
    "score_contribution",
]
