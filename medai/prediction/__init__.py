# -*- coding: utf-8 -*-
"""
CVD risk prediction

Feature vector, BMI and the HTTP adapter for the hosted prediction service.
"""

from .client import RiskPredictionClient, get_prediction_client, parse_prediction
from .features import FEATURE_FIELDS, FeatureVector, PredictionResult, compute_bmi

__all__ = [
    'FEATURE_FIELDS',
    'FeatureVector',
    'PredictionResult',
    'RiskPredictionClient',
    'compute_bmi',
    'get_prediction_client',
    'parse_prediction',
]
