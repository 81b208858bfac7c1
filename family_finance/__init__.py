"""
Family Finance - Source Package

Household finance tracking for families: members, categories,
transactions, assets and liabilities, gated by subscription plan.

DESIGN PRINCIPLES:
1. Fail closed on any doubt about access
2. Every read and write is scoped to the caller's own rows
3. No backend error crosses into presentation
4. Every gated action is auditable
5. Backend is swappable
"""

__version__ = "1.0.0"
__author__ = "Family Finance Team"
