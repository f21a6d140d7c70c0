"""Artisync - Derived artifact maintenance driven by git hooks.

Artisync keeps generated artifacts (rendered docs, client stubs, schema
bundles, ...) in step with their sources. Installed as post-merge and
post-checkout hooks, it works out what a change touched, regenerates the
affected artifacts once per commit and commits the results back.

Core principles:
- Deterministic: identical commit ranges produce identical impact reports
- Exactly once: idempotency records gate every artifact per target commit
- Loop-free: cascade commits carry a marker and never re-trigger analysis
- Partial success is success: one failing artifact never blocks the others
"""

__version__ = "0.1.0"
__author__ = "Artisync Contributors"
