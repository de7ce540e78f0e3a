"""
Configuration dataclasses for the sleep scoring engine.

Every tuning constant of the engine lives in one immutable ScoringConfig tree.
The config is constructed once (DEFAULT_SCORING_CONFIG, or Settings.to_scoring_config())
and passed explicitly into every scoring call.

Constant groups:
    - SourceReliability: credibility factor and stage validity per data source
    - ComponentWeights: base allocation of the eight components (renormalized after adjustment)
    - CompletenessConfig: penalties for missing stage and timing fields
    - BaselineBlendConfig: personal vs population share of the scoring targets
    - DynamicWeightConfig: ordered additive weight shifts
    - GaussianSigmaConfig: asymmetric normalization widths
    - WasoConfig, ScreenTimeConfig, TimingConfig: component-specific curves
    - ChronicDebtConfig, AgeEfficiencyCorrectionConfig, ShrinkageConfig: post-aggregation corrections
    - FlagThresholds: thresholds for interpretable flags
    - ConfidenceConfig: data-quality cut-offs for the confidence level
    - age_norms: population norms per AgeBucket
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass, field, fields
from types import MappingProxyType

from sleep_score_engine.core.constants import AgeBucket, Chronotype, ComponentKey, DataSource
from sleep_score_engine.core.exceptions import ConfigurationError, ErrorCodes
from sleep_score_engine.schemas.models import AgeNorm

WEIGHT_SUM_TOLERANCE = 1e-6


@dataclass(frozen=True)
class SourceReliability:
    """Credibility of a data source compared with polysomnography."""

    factor: float
    stage_data_valid: bool


@dataclass(frozen=True)
class ComponentWeights:
    """
    Weight per component. Values are fractions of the total score.

    Attributes mirror ComponentKey. Use as_dict() to get a ComponentKey mapping.
    """

    duration: float = 0.28
    deep_sleep: float = 0.18
    rem_sleep: float = 0.18
    efficiency: float = 0.14
    waso: float = 0.10
    consistency: float = 0.08
    timing: float = 0.04
    screen_time: float = 0.02

    def as_dict(self) -> dict[ComponentKey, float]:
        return {
            ComponentKey.DURATION: self.duration,
            ComponentKey.DEEP_SLEEP: self.deep_sleep,
            ComponentKey.REM_SLEEP: self.rem_sleep,
            ComponentKey.EFFICIENCY: self.efficiency,
            ComponentKey.WASO: self.waso,
            ComponentKey.CONSISTENCY: self.consistency,
            ComponentKey.TIMING: self.timing,
            ComponentKey.SCREEN_TIME: self.screen_time,
        }


@dataclass(frozen=True)
class CompletenessConfig:
    missing_stage_penalty: float = 0.10
    missing_time_penalty: float = 0.05
    min_factor: float = 0.6


@dataclass(frozen=True)
class BaselineBlendConfig:
    """Nominal personal/population split, used once history is deep enough."""

    personal: float = 0.6
    population: float = 0.4


@dataclass(frozen=True)
class AgeOver50Adjustment:
    age_threshold: int = 50
    deep_sleep_plus: float = 0.04
    efficiency_minus: float = 0.02
    waso_plus: float = 0.02


@dataclass(frozen=True)
class EveningChronotypeAdjustment:
    rem_plus: float = 0.03
    consistency_plus: float = 0.02
    timing_plus: float = 0.02


@dataclass(frozen=True)
class DurationNearGoalAdjustment:
    """Fires when the night's duration is at least goal_ratio of the sleep goal."""

    goal_ratio: float = 0.95
    duration_minus: float = 0.06
    efficiency_plus: float = 0.03
    deep_plus: float = 0.02
    rem_plus: float = 0.01


@dataclass(frozen=True)
class ShortSleepAdjustment:
    threshold_min: float = 300
    duration_plus: float = 0.08
    efficiency_minus: float = 0.04
    waso_minus: float = 0.04


@dataclass(frozen=True)
class LowHistoryAdjustment:
    threshold_nights: int = 5
    keep_ratio: float = 0.1
    redistribute_duration: float = 0.5
    redistribute_efficiency: float = 0.5


@dataclass(frozen=True)
class HighHistoryAdjustment:
    threshold_nights: int = 14
    consistency_plus: float = 0.02
    timing_plus: float = 0.01


@dataclass(frozen=True)
class UntrustedStageAdjustment:
    """Weight shift for sources whose stage data is not valid."""

    keep_ratio: float = 0.15
    to_duration: float = 0.55
    to_efficiency: float = 0.30
    to_waso: float = 0.15


@dataclass(frozen=True)
class DynamicWeightConfig:
    age_over_50: AgeOver50Adjustment = field(default_factory=AgeOver50Adjustment)
    evening_chronotype: EveningChronotypeAdjustment = field(default_factory=EveningChronotypeAdjustment)
    duration_near_goal: DurationNearGoalAdjustment = field(default_factory=DurationNearGoalAdjustment)
    short_sleep: ShortSleepAdjustment = field(default_factory=ShortSleepAdjustment)
    consistency_low_history: LowHistoryAdjustment = field(default_factory=LowHistoryAdjustment)
    consistency_high_history: HighHistoryAdjustment = field(default_factory=HighHistoryAdjustment)
    untrusted_stage_data: UntrustedStageAdjustment = field(default_factory=UntrustedStageAdjustment)


@dataclass(frozen=True)
class GaussianSigmaConfig:
    """Spread of the normalization curve below and above each target."""

    duration_below: float = 60
    duration_above: float = 90
    deep_below: float = 4
    deep_above: float = 6
    rem_below: float = 4.5
    rem_below_evening_chronotype: float = 3.5
    rem_above: float = 6
    efficiency_below: float = 0.07
    efficiency_above: float = 0.05
    consistency_minutes: float = 60
    timing_minutes: float = 70


@dataclass(frozen=True)
class WasoConfig:
    severe_minutes: float = 60
    baseline_tail_target: float = 0.3
    relative_floor: float = 0


@dataclass(frozen=True)
class ConsistencyConfig:
    """Blend of bedtime deviation and bedtime spread in the consistency component."""

    deviation_share: float = 0.6
    spread_share: float = 0.4
    spread_ceiling_minutes: float = 120


@dataclass(frozen=True)
class TimingConfig:
    """Ideal bedtime per chronotype, in minutes from midnight."""

    morning_target: float = 22 * 60
    intermediate_target: float = 23 * 60
    evening_target: float = 60
    default_bedtime: float = 23 * 60
    default_wake: float = 7 * 60

    def target_for(self, chronotype: Chronotype | None) -> float:
        if chronotype == Chronotype.MORNING:
            return self.morning_target
        if chronotype == Chronotype.EVENING:
            return self.evening_target
        return self.intermediate_target


@dataclass(frozen=True)
class ScreenTimeConfig:
    """Logistic decay of the screen-time score around midpoint_minutes."""

    midpoint_minutes: float = 40
    slope: float = 0.04


@dataclass(frozen=True)
class ChronicDebtConfig:
    recent_window_nights: int = 7
    min_history_nights: int = 3
    max_penalty: float = 0.12
    deficit_scale: float = 0.5


@dataclass(frozen=True)
class AgeEfficiencyCorrectionConfig:
    age_start: int = 40
    points_per_year: float = 0.15
    max_correction_points: float = 5


@dataclass(frozen=True)
class ShrinkageConfig:
    prior_mean: float = 50
    low_confidence_extra_factor: float = 0.9


@dataclass(frozen=True)
class ConfidenceConfig:
    """Data quality (reliability x completeness) cut-offs."""

    high_min_quality: float = 0.9
    low_max_quality: float = 0.6


@dataclass(frozen=True)
class FlagThresholds:
    duration_below_5h: float = 300
    goal_duration_low_ratio: float = 0.8
    deep_low_ratio: float = 0.15
    rem_low_ratio: float = 0.15
    awake_tst_high_ratio: float = 0.1
    bedtime_deviation_warning_minutes: float = 90
    bedtime_deviation_severe_minutes: float = 180
    social_jet_lag_variance_minutes: float = 90
    min_history_nights: int = 5


DEFAULT_SOURCE_RELIABILITY: Mapping[DataSource, SourceReliability] = MappingProxyType(
    {
        DataSource.WEARABLE: SourceReliability(factor=1.0, stage_data_valid=True),
        DataSource.HEALTH_CONNECT: SourceReliability(factor=0.95, stage_data_valid=True),
        DataSource.MANUAL: SourceReliability(factor=0.85, stage_data_valid=False),
        DataSource.DIGITAL_WELLBEING: SourceReliability(factor=0.7, stage_data_valid=False),
        DataSource.USAGE_STATS: SourceReliability(factor=0.65, stage_data_valid=False),
    }
)

# AASM guidance + Ohayon et al. meta-analysis trend anchors
DEFAULT_AGE_NORMS: Mapping[AgeBucket, AgeNorm] = MappingProxyType(
    {
        AgeBucket.UNDER_18: AgeNorm(
            ideal_duration_min=540,
            min_healthy_duration_min=480,
            deep_pct_ideal=22,
            deep_pct_low=17,
            deep_pct_high=28,
            rem_pct_ideal=22,
            rem_pct_low=17,
            rem_pct_high=28,
            efficiency_ideal=0.93,
            efficiency_low=0.85,
            waso_expected=15,
            waso_acceptable=20,
        ),
        AgeBucket.AGE_18_25: AgeNorm(
            ideal_duration_min=490,
            min_healthy_duration_min=420,
            deep_pct_ideal=20,
            deep_pct_low=16,
            deep_pct_high=25,
            rem_pct_ideal=22,
            rem_pct_low=17,
            rem_pct_high=27,
            efficiency_ideal=0.92,
            efficiency_low=0.85,
            waso_expected=18,
            waso_acceptable=20,
        ),
        AgeBucket.AGE_26_35: AgeNorm(
            ideal_duration_min=460,
            min_healthy_duration_min=420,
            deep_pct_ideal=18,
            deep_pct_low=14,
            deep_pct_high=23,
            rem_pct_ideal=21,
            rem_pct_low=16,
            rem_pct_high=26,
            efficiency_ideal=0.91,
            efficiency_low=0.85,
            waso_expected=22,
            waso_acceptable=25,
        ),
        AgeBucket.AGE_36_50: AgeNorm(
            ideal_duration_min=450,
            min_healthy_duration_min=420,
            deep_pct_ideal=15,
            deep_pct_low=11,
            deep_pct_high=20,
            rem_pct_ideal=20,
            rem_pct_low=15,
            rem_pct_high=25,
            efficiency_ideal=0.88,
            efficiency_low=0.82,
            waso_expected=32,
            waso_acceptable=40,
        ),
        AgeBucket.AGE_51_65: AgeNorm(
            ideal_duration_min=440,
            min_healthy_duration_min=420,
            deep_pct_ideal=13,
            deep_pct_low=9,
            deep_pct_high=17,
            rem_pct_ideal=19,
            rem_pct_low=14,
            rem_pct_high=24,
            efficiency_ideal=0.85,
            efficiency_low=0.79,
            waso_expected=42,
            waso_acceptable=55,
        ),
        AgeBucket.AGE_65_PLUS: AgeNorm(
            ideal_duration_min=420,
            min_healthy_duration_min=390,
            deep_pct_ideal=11,
            deep_pct_low=7,
            deep_pct_high=15,
            rem_pct_ideal=17,
            rem_pct_low=12,
            rem_pct_high=22,
            efficiency_ideal=0.82,
            efficiency_low=0.75,
            waso_expected=52,
            waso_acceptable=70,
        ),
    }
)


@dataclass(frozen=True)
class ScoringConfig:
    """
    Complete, immutable tuning surface of the scoring engine.

    Validated on construction; invalid values raise ConfigurationError.

    Attributes:
        source_reliability: Reliability per DataSource
        base_weights: Component allocation before dynamic reweighting
        completeness: Missing-field penalties
        baseline_blend: Nominal personal/population split
        dynamic_weights: Ordered weight-shift parameters
        sigma: Gaussian widths
        waso: WASO curve parameters
        consistency: Consistency component blend
        timing: Chronotype bedtime targets and empty-history clock defaults
        screen_time: Screen-time logistic curve
        chronic_debt: Rolling sleep-debt drag
        age_efficiency_correction: Efficiency points returned to older users
        shrinkage: Pull toward the prior mean for uncertain nights
        confidence: Data-quality cut-offs
        flags: Flag thresholds
        age_norms: Population norms per bucket
        neutral_component_score: Score for components without usable input
        default_sleep_goal_minutes: Goal used when the profile has none
        history_window_nights: Most recent nights considered for the baseline

    """

    source_reliability: Mapping[DataSource, SourceReliability] = field(default_factory=lambda: DEFAULT_SOURCE_RELIABILITY)
    base_weights: ComponentWeights = field(default_factory=ComponentWeights)
    completeness: CompletenessConfig = field(default_factory=CompletenessConfig)
    baseline_blend: BaselineBlendConfig = field(default_factory=BaselineBlendConfig)
    dynamic_weights: DynamicWeightConfig = field(default_factory=DynamicWeightConfig)
    sigma: GaussianSigmaConfig = field(default_factory=GaussianSigmaConfig)
    waso: WasoConfig = field(default_factory=WasoConfig)
    consistency: ConsistencyConfig = field(default_factory=ConsistencyConfig)
    timing: TimingConfig = field(default_factory=TimingConfig)
    screen_time: ScreenTimeConfig = field(default_factory=ScreenTimeConfig)
    chronic_debt: ChronicDebtConfig = field(default_factory=ChronicDebtConfig)
    age_efficiency_correction: AgeEfficiencyCorrectionConfig = field(default_factory=AgeEfficiencyCorrectionConfig)
    shrinkage: ShrinkageConfig = field(default_factory=ShrinkageConfig)
    confidence: ConfidenceConfig = field(default_factory=ConfidenceConfig)
    flags: FlagThresholds = field(default_factory=FlagThresholds)
    age_norms: Mapping[AgeBucket, AgeNorm] = field(default_factory=lambda: DEFAULT_AGE_NORMS)
    neutral_component_score: float = 0.5
    default_sleep_goal_minutes: float = 480
    history_window_nights: int = 30

    def __post_init__(self) -> None:
        self._validate()

    def _validate(self) -> None:
        base = self.base_weights.as_dict().values()
        if any(value < 0 for value in base) or sum(base) <= 0:
            msg = "Base component weights must be non-negative with a positive sum"
            raise ConfigurationError(msg, ErrorCodes.CONFIG_INVALID, {"weight_sum": sum(base)})

        for sigma_field in fields(self.sigma):
            value = getattr(self.sigma, sigma_field.name)
            if not math.isfinite(value) or value <= 0:
                msg = f"Gaussian sigma '{sigma_field.name}' must be positive, got {value}"
                raise ConfigurationError(msg, ErrorCodes.CONFIG_INVALID)

        missing_sources = set(DataSource) - set(self.source_reliability)
        if missing_sources:
            msg = f"Source reliability missing for: {sorted(missing_sources)}"
            raise ConfigurationError(msg, ErrorCodes.CONFIG_INVALID)

        missing_buckets = set(AgeBucket) - set(self.age_norms)
        if missing_buckets:
            msg = f"Age norms missing for: {sorted(bucket.label for bucket in missing_buckets)}"
            raise ConfigurationError(msg, ErrorCodes.CONFIG_INVALID)

        blend_sum = self.baseline_blend.personal + self.baseline_blend.population
        if abs(blend_sum - 1.0) > WEIGHT_SUM_TOLERANCE:
            msg = f"Baseline blend shares must sum to 1.0, got {blend_sum:.6f}"
            raise ConfigurationError(msg, ErrorCodes.CONFIG_INVALID)

        if self.default_sleep_goal_minutes <= 0:
            msg = "Default sleep goal must be positive"
            raise ConfigurationError(msg, ErrorCodes.CONFIG_INVALID)

        if self.history_window_nights < 1:
            msg = "History window must hold at least one night"
            raise ConfigurationError(msg, ErrorCodes.CONFIG_INVALID)


DEFAULT_SCORING_CONFIG = ScoringConfig()
