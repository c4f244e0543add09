"""
Cross-tool observability primitives:
- Correlation IDs (process-wide, set once, reset for test isolation)
"""
