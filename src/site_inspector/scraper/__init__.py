"""Page analysis pipeline.

Analyses a single URL through a ladder of strategies of decreasing fidelity
and returns one strategy-agnostic result.

Sub-modules:
- ``config``: constants, signature table and extraction limits
- ``coordinator``: strategy plan, denylist override and fallback fold
- ``playwright_fetcher``: headless Chromium strategy (mode ``real``)
- ``page_scripts``: JavaScript evaluated inside the page
- ``http_fetcher``: httpx GET strategy (mode ``alternative``)
- ``markup_parser``: regex extraction used by the fetch strategy
- ``simulated``: placeholder strategy (mode ``simulated``)
- ``normalizer``: option gating, caps and de-duplication
- ``router``: FastAPI router (``/analyze``, ``/status``, ``/analyses``)
"""
