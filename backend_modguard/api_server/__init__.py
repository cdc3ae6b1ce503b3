"""
HTTP surface for the decision engine (FastAPI).
"""
