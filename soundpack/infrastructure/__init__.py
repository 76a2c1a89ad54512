"""
Infrastructure Layer

Concrete storage tiers, Redis persistence, mail transport and event handlers.
"""
