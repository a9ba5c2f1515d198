"""
Configuration for the Fusion Engine.
"""

from src.shared.config import settings


# Proximity-derived correlation parameters
PROXIMITY_THRESHOLD_DEG = settings.fusion_proximity_threshold_deg
MIN_PROXIMITY_STRENGTH = settings.fusion_min_strength
PROXIMITY_TEMPORAL_FACTOR = settings.fusion_default_temporal_factor
PROXIMITY_SEMANTIC_FACTOR = settings.fusion_default_semantic_factor

# Float rounding allowance when comparing distances to the threshold
DISTANCE_TOLERANCE_DEG = 1e-9

# Fill-in for authoritative correlations without factors
DEFAULT_FACTOR = settings.fusion_default_factor

# Correlation type buckets (value strictly above the bound)
CONFIRMED_ABOVE = 0.7
PROBABLE_ABOVE = 0.4

# Threat area synthesis
THREAT_AREA_MIN_POINTS = settings.threat_area_min_points
THREAT_AREA_MIN_RADIUS_M = settings.threat_area_min_radius_m
METERS_PER_DEGREE = settings.meters_per_degree

# Threat level classification
HIGH_CONFIDENCE_STRENGTH = 0.7
MILITARY_TYPE_KEYWORDS = ("military", "force", "vehicle", "radar")

# Default accuracy (meters) by electronic order of battle class
EOB_DEFAULT_ACCURACY_M = {
    "air-defense": 100.0,
    "ground-force": 200.0,
    "naval": 500.0,
    "air": 1000.0,  # Fast movers, loosest fix
    "unknown": 1000.0,
}

# Prediction confidence levels (value at or above the bound)
PREDICTION_HIGH_AT = 0.7
PREDICTION_MEDIUM_AT = 0.4
