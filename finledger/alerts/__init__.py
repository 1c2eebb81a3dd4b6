"""Price alert evaluation."""

from finledger.alerts.evaluator import PriceAlertEvaluator, apply_quote, in_cooldown, is_matched

__all__ = ["PriceAlertEvaluator", "apply_quote", "in_cooldown", "is_matched"]
