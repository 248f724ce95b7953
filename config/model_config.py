"""
Configuration file for walk-forward validation and ensemble optimization.
Controls which prediction methods are active, their starting weights in the
ensemble, and the scoring policy used to compare them.
"""

# Method Selection Configuration
ACTIVE_METHODS = {
    'confidence': True,    # Per-position confidence intervals
    'signature': True,     # Structural scoring signature
    'frequency': True,     # Lookback frequency counts
    'sequence': True,      # Learned-sequence placeholder (temporal average)
}

# Method Weights for Ensemble Voting
# Equal weights until the first adaptive update
METHOD_WEIGHTS = {
    'confidence': 0.25,
    'signature': 0.25,
    'frequency': 0.25,
    'sequence': 0.25,
}

# Method-specific Parameters
METHOD_PARAMS = {
    'confidence': {
        'interval_method': 'bootstrap',
        'decay_rate': 0.95,
        'min_gap': 2,
        'confidence': None,  # None = use the run's confidence level
    },
    'signature': {
        'weights': {
            'prime': 0.3,
            'digital_root': 0.2,
            'mod5': 0.2,
            'grid_position': 0.3,
        },
        'candidates': 'history',  # 'history' or 'domain'
        'confidence': 0.70,
    },
    'frequency': {
        'lookback_period': 100,
        'confidence': 0.60,
    },
    'sequence': {
        'lookback': 10,
        'confidence': 0.65,
    },
    'offset': {
        'offsets': [3, 11, 19, 27, 35, 43, 51, 59],
        'default_base': 35,
        'confidence': 0.70,
    },
    'hybrid': {
        'confidence': 0.80,
    },
}

# Bonus-number estimator shared by the non-interval methods
BONUS_CONFIG = {
    'recent_draws': 20,
}

# Adaptive ensemble weighting
ENSEMBLE_CONFIG = {
    'learning_rate': 0.1,
    'min_weight': 0.05,
    'max_weight': 0.7,
    'confidence': 0.75,
}

# Composite score blend (must stay fixed within a run)
SCORING_WEIGHTS = {
    'average_matches': 0.4,
    'hit_rate': 0.3,
    'win_rate': 0.2,
    'position_accuracy': 0.1,
}

SCORING_CONFIG = {
    'hit_threshold': 3,            # Matches needed to count as a hit
    'position_error_scale': 35.0,  # MAE that maps to zero position accuracy
    'ticket_cost': 2,
}

# Prize tiers keyed by (primary matches, bonus matched)
PRIZE_TIERS = {
    (5, True): 'jackpot',
    (5, False): 'match5',
    (4, True): 'match4plus',
    (4, False): 'match4',
    (3, True): 'match3plus',
    (3, False): 'match3',
    (2, True): 'match2plus',
    (1, True): 'match1plus',
}

PRIZE_VALUES = {
    'jackpot': 100000000,
    'match5': 1000000,
    'match4plus': 50000,
    'match4': 100,
    'match3plus': 100,
    'match3': 7,
    'match2plus': 7,
    'match1plus': 4,
}

# Walk-forward validation defaults
VALIDATION_CONFIG = {
    'min_training_size': 100,
    'test_window_size': 50,
    'step_size': 10,
    'max_validation_periods': 20,
    'bootstrap_iterations': 200,
    'confidence_level': 0.95,
    'method': 'bootstrap',
    'include_ensemble': True,
    'adaptive_weighting': True,
}

# Parameter optimization defaults
OPTIMIZATION_CONFIG = {
    'method': 'random',
    'iterations': 100,
    'cross_validation_folds': 5,
    'min_training_fraction': 0.3,
    'num_offsets': 8,
    'offset_range': (1, 68),
    'min_spread': 3,
    'max_spread': 15,
    'weight_levels': 4,       # Grid levels per weight component
    'progress_interval': 10,  # Iterations between progress events
}

# Reference performance the optimizer reports improvement against
OPTIMIZATION_BASELINE = {
    'hit_rate': 0.1,
    'average_matches': 1.2,
}
