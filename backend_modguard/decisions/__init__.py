"""
Decision engine package: assess text, plan enforcement, expose status.
"""

from backend_modguard.decisions.engine import DecisionEngine, EnforcementPlan

__all__ = ["DecisionEngine", "EnforcementPlan"]
